from decimal import Decimal

from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Read env from container + optionally from files
    model_config = SettingsConfigDict(
        env_file=(".env", ".env.docker"),
        extra="ignore",
        case_sensitive=False,
    )

    # App
    ENVIRONMENT: str = Field(default="docker", validation_alias=AliasChoices("ENVIRONMENT", "environment"))
    APP_NAME: str = Field(default="gst_engine", validation_alias=AliasChoices("APP_NAME", "app_name"))
    LOG_LEVEL: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))
    DEBUG: bool = Field(default=False, validation_alias=AliasChoices("DEBUG", "debug"))

    # Infrastructure
    DATABASE_URL: str = Field(
        default="postgresql+asyncpg://postgres:postgres@db:5432/pharmacy_pos",
        validation_alias=AliasChoices("DATABASE_URL", "database_url"),
    )

    # Rate resolution fallback (medicines default to 12% exclusive)
    DEFAULT_GST_RATE_PERCENT: Decimal = Field(
        default=Decimal("12"),
        validation_alias=AliasChoices("DEFAULT_GST_RATE_PERCENT", "default_gst_rate_percent"),
    )
    DEFAULT_GST_TYPE: str = Field(default="EXCLUSIVE", validation_alias=AliasChoices("DEFAULT_GST_TYPE", "default_gst_type"))
    DEFAULT_PLACE_OF_SUPPLY_POLICY: str = Field(
        default="CUSTOMER_STATE",
        validation_alias=AliasChoices("DEFAULT_PLACE_OF_SUPPLY_POLICY", "default_place_of_supply_policy"),
    )

    # Totals
    ROUND_OFF_LIMIT_PAISE: int = Field(default=50, validation_alias=AliasChoices("ROUND_OFF_LIMIT_PAISE", "round_off_limit_paise"))
    CREDIT_NOTE_APPLY_ROUND_OFF: bool = Field(
        default=False,
        validation_alias=AliasChoices("CREDIT_NOTE_APPLY_ROUND_OFF", "credit_note_apply_round_off"),
    )

    # Document numbering
    CREDIT_NOTE_PREFIX: str = Field(default="CN", validation_alias=AliasChoices("CREDIT_NOTE_PREFIX", "credit_note_prefix"))
    INVOICE_PREFIX: str = Field(default="PP", validation_alias=AliasChoices("INVOICE_PREFIX", "invoice_prefix"))
    DOCUMENT_NUMBER_WIDTH: int = Field(default=4, validation_alias=AliasChoices("DOCUMENT_NUMBER_WIDTH", "document_number_width"))
    NUMBER_ALLOCATION_RETRIES: int = Field(
        default=3,
        validation_alias=AliasChoices("NUMBER_ALLOCATION_RETRIES", "number_allocation_retries"),
    )


settings = Settings()
