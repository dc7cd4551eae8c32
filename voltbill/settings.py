import logging
import secrets

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_INSECURE_DEFAULT_KEY = "change-me-in-production"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="VOLTBILL_", extra="ignore")

    db_url: str = "sqlite:///voltbill.db"

    storage_backend: str = "local"
    export_local_path: str = "./exports"
    storage_prefix: str = "bills"

    bill_number_prefix: str = "BILL"
    default_unit: str = "pcs"
    min_bill_items: int = 1

    business_name: str = "ELECTRICAL & PIPELINE SERVICES"
    business_tagline: str = "Professional Billing Invoice"
    currency_symbol: str = "₹"

    log_level: str = "INFO"
    log_json: bool = False

    secret_key: str = _INSECURE_DEFAULT_KEY

    def get_secret_key(self) -> str:
        if self.secret_key == _INSECURE_DEFAULT_KEY:
            logger.warning(
                "VOLTBILL_SECRET_KEY is not set, using a random key. "
                "Flash messages will not survive restarts. "
                "Set VOLTBILL_SECRET_KEY in your environment or .env file."
            )
            self.secret_key = secrets.token_urlsafe(32)
        return self.secret_key


settings = Settings()
