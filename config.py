import os
from decimal import Decimal
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        store_timeout_secs: float,
        pool_size: int,
        degrade_reads: bool,
        high_average_threshold: Decimal,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.store_timeout_secs = store_timeout_secs
        self.pool_size = pool_size
        self.degrade_reads = degrade_reads
        self.high_average_threshold = high_average_threshold


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("FINANCE_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    database_url = os.getenv("FINANCE_DATABASE_URL")
    if not database_url:
        default_db = _ensure_data_dir() / "finance.db"
        database_url = f"sqlite:///{default_db}"
    timezone = os.getenv("FINANCE_TIMEZONE", "UTC")
    store_timeout_secs = float(os.getenv("FINANCE_STORE_TIMEOUT_SECS", "5"))
    pool_size = int(os.getenv("FINANCE_POOL_SIZE", "10"))
    degrade_reads = _env_flag("FINANCE_DEGRADE_READS", "true")
    high_average_threshold = Decimal(
        os.getenv("FINANCE_HIGH_AVERAGE_THRESHOLD", "100")
    )
    return Settings(
        database_url=database_url,
        timezone=timezone,
        store_timeout_secs=store_timeout_secs,
        pool_size=pool_size,
        degrade_reads=degrade_reads,
        high_average_threshold=high_average_threshold,
    )
