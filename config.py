import logging
import os
from dataclasses import dataclass, field
from typing import List


def _split_origins(value):
    return [origin.strip() for origin in value.split(",") if origin.strip()]


@dataclass
class Settings:
    host: str = "0.0.0.0"
    port: int = 3000
    model_path: str = "./model/model.pth"
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = ""
    db_password: str = ""
    db_name: str = "db"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ=None):
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("HOST", "0.0.0.0"),
            port=int(env.get("PORT", 3000)),
            model_path=env.get("MODEL_PATH", "./model/model.pth"),
            db_host=env.get("DB_HOST", "localhost"),
            db_port=int(env.get("DB_PORT", 5432)),
            db_user=env.get("DB_USER", ""),
            db_password=env.get("DB_PASSWORD", ""),
            db_name=env.get("DB_NAME", "db"),
            cors_origins=_split_origins(env.get("CORS_ORIGINS", "*")),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level="INFO"):
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


MAX_UPLOAD_BYTES = 1000000
IMAGE_SIZE = (224, 224)
MAX_IMAGE_PIXELS = 4096 * 4096
CANCER_THRESHOLD = 0.5
PREDICTIONS_COLLECTION = "predictions"
