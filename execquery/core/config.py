from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from execquery.core.report import ReportFlag, parse_report_mode


class Settings(BaseSettings):
    """Library settings, read from EXECQUERY_* environment variables or .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="EXECQUERY_",
        env_ignore_empty=True,
        extra="ignore",
    )

    EXTERNAL_DB_CONNECT_TIMEOUT: int = Field(
        default=10, description="Connect timeout in seconds for external DBs"
    )
    # None or 0 disables the per-statement timeout.
    EXTERNAL_DB_STATEMENT_TIMEOUT: float | None = Field(default=None)
    EXTERNAL_DB_POOL_SIZE: int = Field(default=5, ge=0)
    EXTERNAL_DB_POOL_MAX_AGE_SEC: float = Field(default=600.0, gt=0)
    EXTERNAL_DB_AUTOCOMMIT: bool = Field(default=True)

    DEFAULT_REPORT_MODE: ReportFlag = Field(
        default=ReportFlag.ERROR | ReportFlag.STRICT,
        description="Error reporting for new connections: OFF, ERROR, STRICT or ALL "
        "(combine with '|', e.g. 'ERROR|STRICT').",
    )

    @field_validator("DEFAULT_REPORT_MODE", mode="plain")
    @classmethod
    def _parse_report_mode(cls, v: object) -> ReportFlag:
        return parse_report_mode(v)


settings = Settings()
