import json
import os
from typing import Optional

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
CONFIG_PATH = os.environ.get("BAZAAR_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))
DEFAULT_FIXTURES_PATH = os.path.join(PROJECT_ROOT, "bazaar", "db", "fixtures.json")


class Settings:
    PROJECT_NAME: str = "Bazaar Board"
    PROJECT_VERSION: str = "1.0.0"

    JWT_SECRET: str
    JWT_ALGORITHM: str
    DATABASE_URL: str

    SESSION_TTL_DAYS: int = 7
    STARTING_BALANCE: int = 5_000_000
    SALE_RETENTION_HOURS: int = 24
    SWEEP_INTERVAL_SECONDS: int = 60
    SEED_FIXTURES: bool = True
    FIXTURES_PATH: str = DEFAULT_FIXTURES_PATH
    LOG_LEVEL: str = "INFO"

    def __init__(self, config_path: Optional[str] = None):
        config_path = config_path or CONFIG_PATH
        config_data = {}
        if os.path.exists(config_path):
            with open(config_path, "r") as f:
                config_data = json.load(f)

        db_config = config_data.get("database")
        if db_config:
            user = db_config.get("user", "root")
            password = db_config.get("password", "")
            host = db_config.get("host", "localhost")
            port = db_config.get("port", 3306)
            name = db_config.get("name", "bazaar_board")

            # Construct MySQL Connection String
            self.DATABASE_URL = f"mysql+mysqlconnector://{user}:{password}@{host}:{port}/{name}"
        else:
            # In-memory store, lives as long as the process
            self.DATABASE_URL = "sqlite://"

        self.JWT_SECRET = config_data.get("jwt_secret", "fallback_secret")
        self.JWT_ALGORITHM = config_data.get("jwt_algorithm", "HS256")

        self.SESSION_TTL_DAYS = int(config_data.get("session_ttl_days", self.SESSION_TTL_DAYS))
        self.STARTING_BALANCE = int(config_data.get("starting_balance", self.STARTING_BALANCE))
        self.SALE_RETENTION_HOURS = int(config_data.get("sale_retention_hours", self.SALE_RETENTION_HOURS))
        self.SWEEP_INTERVAL_SECONDS = int(config_data.get("sweep_interval_seconds", self.SWEEP_INTERVAL_SECONDS))
        self.SEED_FIXTURES = bool(config_data.get("seed_fixtures", self.SEED_FIXTURES))
        self.FIXTURES_PATH = config_data.get("fixtures_path", self.FIXTURES_PATH)
        self.LOG_LEVEL = config_data.get("log_level", self.LOG_LEVEL).upper()

    @property
    def is_memory_db(self) -> bool:
        return self.DATABASE_URL in ("sqlite://", "sqlite:///:memory:")


settings = Settings()
