import os
import logging
from typing import Optional, Tuple, Mapping
from pydantic import BaseModel, ConfigDict
from rich.logging import RichHandler
from dotenv import load_dotenv

DEFAULT_MODEL_NAMES = (
    "gemini-2.5-flash",
    "gemini-2.5-pro",
    "gemini-1.5-flash",
    "gemini-1.5-pro",
)

class Settings(BaseModel):
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_api_key: Optional[str] = None
    github_token: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 3001
    model_names: Tuple[str, ...] = DEFAULT_MODEL_NAMES
    model_timeout: Optional[float] = None
    github_timeout: Optional[float] = None
    log_level: str = "INFO"

def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    return float(value)

def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Reads process configuration once. `.env` is honoured when reading the real environment.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    model_names = DEFAULT_MODEL_NAMES
    if env.get("REPOGRADE_MODELS"):
        model_names = tuple(n.strip() for n in env["REPOGRADE_MODELS"].split(",") if n.strip())

    return Settings(
        # Either name is accepted for the Gemini key
        model_api_key=env.get("API_KEY") or env.get("GEMINI_API_KEY") or None,
        github_token=env.get("GITHUB_TOKEN") or None,
        host=env.get("HOST", "0.0.0.0"),
        port=int(env.get("PORT", "3001")),
        model_names=model_names or DEFAULT_MODEL_NAMES,
        model_timeout=_optional_float(env.get("REPOGRADE_MODEL_TIMEOUT")),
        github_timeout=_optional_float(env.get("REPOGRADE_GITHUB_TIMEOUT")),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )

def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
