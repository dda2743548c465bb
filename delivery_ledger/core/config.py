"""Application configuration."""

from os import getenv
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict


def _default_database_path() -> Path:
    data_home = getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(data_home) / "delivery-ledger" / "orders.db"


class Settings(BaseModel):
    """Runtime settings for the ledger.

    Defaults come from the environment and are validated too, so a bad value
    fails at import instead of on the first request that uses it.
    """

    model_config = ConfigDict(validate_default=True)

    app_name: str = "Delivery Ledger"
    app_env: str = getenv("APP_ENV", "dev")
    debug: bool = getenv("DEBUG", "0") == "1"
    database_path: Path = Path(getenv("LEDGER_DB_PATH", str(_default_database_path())))
    busy_timeout_ms: int = int(getenv("LEDGER_BUSY_TIMEOUT_MS", "5000"))
    opened_orders_policy: Literal["append", "move_to_front"] = getenv("LEDGER_OPENED_ORDERS_POLICY", "append")
    search_default_limit: int = int(getenv("LEDGER_SEARCH_LIMIT", "10"))
    log_level: str = getenv("LOG_LEVEL", "INFO")


settings: Settings = Settings()
