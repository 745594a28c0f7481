# storefront/config.py
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Pick up a local .env during development
load_dotenv()


@dataclass(frozen=True)
class Settings:
    mongo_uri: Optional[str] = None
    mongo_db: str = "storefront"
    frontend_url: str = "http://localhost:5173"
    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"
    api_url: str = "http://127.0.0.1:5000"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            mongo_uri=os.getenv("MONGO_URI") or None,
            mongo_db=os.getenv("MONGO_DB", "storefront"),
            frontend_url=os.getenv("FRONTEND_URL", "http://localhost:5173"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", 5000)),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            api_url=os.getenv("STOREFRONT_API_URL", "http://127.0.0.1:5000"),
        )
