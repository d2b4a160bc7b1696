import os
from dataclasses import dataclass
from typing import Tuple

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    port: int = 5000
    database_url: str = "mongodb://localhost:27017"
    database_name: str = "checkout"
    upload_dir: str = "uploads"
    cors_origins: Tuple[str, ...] = ("*",)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            port=int(os.getenv("PORT", 5000)),
            database_url=os.getenv("DATABASE_URL", "mongodb://localhost:27017"),
            database_name=os.getenv("DATABASE_NAME", "checkout"),
            upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
