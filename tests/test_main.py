from unittest.mock import patch

import pytest

MAIN = "voltbill.__main__"


def _patched(calls, menu_effect=None):
    return (
        patch(f"{MAIN}.configure_logging", side_effect=lambda: calls.append("logging")),
        patch(f"{MAIN}.initialize_db", side_effect=lambda: calls.append("migrate")),
        patch(f"{MAIN}.reconfigure", side_effect=lambda: calls.append("reconfigure")),
        patch(f"{MAIN}.main_menu", side_effect=menu_effect or (lambda: calls.append("menu"))),
        patch(f"{MAIN}.close_connection", side_effect=lambda: calls.append("close")),
    )


def test_main_migrates_then_opens_menu():
    from voltbill.__main__ import main

    calls = []
    p1, p2, p3, p4, p5 = _patched(calls)
    with p1, p2, p3, p4, p5:
        main()
    assert calls == ["logging", "migrate", "reconfigure", "menu", "close"]


def test_connection_closed_on_interrupt():
    from voltbill.__main__ import main

    calls = []
    p1, p2, p3, p4, p5 = _patched(calls, menu_effect=KeyboardInterrupt)
    with p1, p2, p3, p4, p5:
        with pytest.raises(KeyboardInterrupt):
            main()
    assert calls[-1] == "close"
