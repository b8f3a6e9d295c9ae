from __future__ import annotations

from pydantic import BaseModel
from dotenv import load_dotenv
import os

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings(BaseModel):
    http_transport: str = os.getenv("HTTP_TRANSPORT", "httpx")
    http_max_workers: int = int(os.getenv("HTTP_MAX_WORKERS", "8"))
    http_follow_redirects: bool = _flag("HTTP_FOLLOW_REDIRECTS", "true")
    http_trust_env: bool = _flag("HTTP_TRUST_ENV", "true")
    callback_dispatcher: str = os.getenv("CALLBACK_DISPATCHER", "serial")
    event_log_path: str = os.getenv("CALL_EVENT_LOG_PATH", "")
    metrics_enabled: bool = _flag("METRICS_ENABLED", "true")


settings = Settings()
