# function_app/shared/config.py
import json
from pathlib import Path
from typing import Optional

from pydantic import Field, ConfigDict
from pydantic_settings import BaseSettings

DEFAULT_BROWSER_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_PROXY_UA = "Mozilla/5.0 (Azure Functions Download Proxy)"


def _load_local_settings() -> dict:
    p = Path(__file__).resolve()
    for _ in range(6):
        p = p.parent
        cand = p / "local.settings.json"
        if cand.exists():
            try:
                data = json.loads(cand.read_text())
                return data.get("Values", {}) or {}
            except Exception:
                return {}
    return {}


class AppSettings(BaseSettings):
    model_config = ConfigDict(
        case_sensitive=True,
        env_file=None,  # disable .env
        extra="ignore",
    )

    BROWSER_USER_AGENT: str = Field(default=DEFAULT_BROWSER_UA)
    PROXY_USER_AGENT: str = Field(default=DEFAULT_PROXY_UA)
    # empty = no client-side timeout; the host's functionTimeout bounds the call
    UPSTREAM_TIMEOUT_SEC: str = Field(default="")
    RELAY_CHUNK_BYTES: str = Field(default="65536")
    LOG_LEVEL: str = Field(default="INFO")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """Custom settings loader: init → env → local.settings.json"""
        return (
            init_settings,
            env_settings,
            lambda _settings=None: _load_local_settings(),
        )


def get(key: str, default=None):
    return getattr(AppSettings(), key, default)


def upstream_timeout() -> Optional[float]:
    raw = (get("UPSTREAM_TIMEOUT_SEC", "") or "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def chunk_bytes() -> int:
    try:
        return max(1024, int(get("RELAY_CHUNK_BYTES", "65536")))
    except (TypeError, ValueError):
        return 65536
