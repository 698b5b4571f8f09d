"""Result store configuration - environment variables via Pydantic Settings"""

import tempfile
from collections.abc import Mapping
from datetime import timedelta
from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_DIRECTORY = Path(tempfile.gettempdir()) / "Database" / "Results"

# Keys used by the processing server's database property block
PROPERTY_KEYS: dict[str, str] = {
    "path": "path",
    "wipe.enabled": "wipe_enabled",
    "wipe.period": "wipe_period",
    "wipe.threshold": "wipe_threshold",
    "wipe.delay": "wipe_initial_delay",
    "saveResultsToDB": "save_results_to_db",
    "jndiName": "jndi_name",
    "username": "username",
    "password": "password",
    "driver": "database_driver",
    "host": "database_host",
    "name": "database_name",
}


class Settings(BaseSettings):
    """Result store settings

    Sources, highest precedence first:
    1. keyword arguments (Settings.from_properties passes the server's
       property block this way)
    2. RESULT_STORE_* environment variables
    3. the .env file
    4. the defaults below

    Durations (wipe_period, wipe_threshold, wipe_initial_delay) are
    ISO-8601 strings such as "PT1H" or "P7D".
    """

    model_config = SettingsConfigDict(
        env_prefix="RESULT_STORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    path: Path = Field(
        default=DEFAULT_BASE_DIRECTORY,
        description="Base directory for spilled files and the sqlite database",
    )
    save_results_to_db: bool = Field(
        default=False, description="Keep output payloads in the table instead of on disk"
    )

    # Reaper
    wipe_enabled: bool = Field(default=True, description="Enable the reaper")
    wipe_period: timedelta = Field(default=timedelta(hours=1), description="Reaper period")
    wipe_threshold: timedelta = Field(
        default=timedelta(days=7), description="Records older than this are deleted"
    )
    wipe_initial_delay: timedelta = Field(
        default=timedelta(seconds=15), description="Delay before the first reaper firing"
    )

    # Connection
    jndi_name: str | None = Field(
        default=None, description="Registered data source name (selects directory lookup)"
    )
    username: str | None = Field(default=None, description="Database user")
    password: str | None = Field(default=None, description="Database password")
    database_driver: str = Field(default="sqlite", description="SQLAlchemy driver name")
    database_host: str | None = Field(default=None, description="Database host")
    database_name: str = Field(default="results", description="Database name")

    # Retrieval URL
    server_hostname: str = Field(default="localhost", description="Public host name")
    server_port: int = Field(default=8080, description="Public port")
    webapp_path: str = Field(default="wps", description="Web application path")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: Literal["json", "text"] = Field(default="text", description="Log format")

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any], **overrides: Any) -> "Settings":
        """Build settings from server database properties.

        Unknown keys are ignored. Explicit keyword overrides win.

        Example:
            >>> Settings.from_properties({"wipe.period": "PT30M", "saveResultsToDB": "true"})
        """
        values: dict[str, Any] = {}
        for key, value in properties.items():
            field_name = PROPERTY_KEYS.get(key)
            if field_name is not None and value is not None:
                values[field_name] = value
        values.update(overrides)
        return cls(**values)

    @property
    def base_result_url(self) -> str:
        return (
            f"http://{self.server_hostname}:{self.server_port}/"
            f"{self.webapp_path.strip('/')}/RetrieveResultServlet?id="
        )


settings = Settings()
