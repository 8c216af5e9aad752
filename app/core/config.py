from datetime import date
from decimal import Decimal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReportingConfig(BaseModel):
    """
    Per-tenant reporting configuration.

    Explicit, typed and versioned: every knob the report engine reads lives
    here as a named field instead of in a free-form settings dict.
    """
    model_config = ConfigDict(frozen=True)

    version: int = 1
    currency: str = "USD"
    # Initial capital until a capital-contribution ledger exists
    owners_equity: Decimal = Decimal("10000.00")
    # Start of the retained earnings accumulation
    inception_date: date = date(2020, 1, 1)
    include_unapproved_expenses: bool = True
    report_timeout_seconds: float = Field(30.0, gt=0)
    trend_max_concurrency: int = Field(4, ge=1)
    trend_max_months: int = Field(36, ge=1)

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.strip().upper()


class Settings(BaseSettings):
    # Database settings
    POSTGRES_USER: str = 'ally_user'
    POSTGRES_PASSWORD: str = 'ally_pass'
    POSTGRES_DB: str = 'ally_db'
    POSTGRES_HOST: str = 'postgres'
    POSTGRES_PORT: int = 5432
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20

    # Reporting engine defaults
    REPORT_CURRENCY: str = 'USD'
    REPORT_OWNERS_EQUITY: Decimal = Decimal('10000.00')
    REPORT_INCEPTION_DATE: date = date(2020, 1, 1)
    REPORT_INCLUDE_UNAPPROVED_EXPENSES: bool = True
    REPORT_TIMEOUT_SECONDS: float = 30.0
    REPORT_TREND_MAX_CONCURRENCY: int = 4
    REPORT_TREND_MAX_MONTHS: int = 36

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    @property
    def async_database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def reporting_config(self) -> ReportingConfig:
        return ReportingConfig(
            currency=self.REPORT_CURRENCY,
            owners_equity=self.REPORT_OWNERS_EQUITY,
            inception_date=self.REPORT_INCEPTION_DATE,
            include_unapproved_expenses=self.REPORT_INCLUDE_UNAPPROVED_EXPENSES,
            report_timeout_seconds=self.REPORT_TIMEOUT_SECONDS,
            trend_max_concurrency=self.REPORT_TREND_MAX_CONCURRENCY,
            trend_max_months=self.REPORT_TREND_MAX_MONTHS,
        )

    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("DEBUG", mode="before")
    @classmethod
    def parse_debug(cls, v):
        if isinstance(v, str):
            return v.lower().strip('"').strip("'") in ("true", "1", "yes", "on")
        return bool(v)

    @field_validator("REPORT_INCLUDE_UNAPPROVED_EXPENSES", mode="before")
    @classmethod
    def parse_include_unapproved(cls, v):
        if isinstance(v, str):
            return v.lower().strip('"').strip("'") in ("true", "1", "yes", "on")
        return bool(v)

settings = Settings()
