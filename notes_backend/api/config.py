import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, read once at startup and never mutated."""
    secret_key: str = field(repr=False)
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    storage_backend: str = "memory"
    database_url: Optional[str] = field(default=None, repr=False)
    bcrypt_rounds: int = 12
    cors_origins: Tuple[str, ...] = ("*",)
    log_level: str = "INFO"

    @property
    def access_token_ttl(self) -> timedelta:
        return timedelta(minutes=self.access_token_expire_minutes)


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}.")


# PUBLIC_INTERFACE
def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Reads settings from the environment (and a .env file when `env` is not given).

    SECRET_KEY is mandatory; there is no built-in fallback secret.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    secret_key = env.get("SECRET_KEY")
    if not secret_key:
        raise ValueError("SECRET_KEY environment variable not set.")

    algorithm = env.get("JWT_ALGORITHM", "HS256").upper()
    if algorithm not in HMAC_ALGORITHMS:
        raise ValueError(f"JWT_ALGORITHM must be one of {HMAC_ALGORITHMS}, got {algorithm!r}.")

    expire_minutes = _int(env, "ACCESS_TOKEN_EXPIRE_MINUTES", 60)
    if expire_minutes <= 0:
        raise ValueError("ACCESS_TOKEN_EXPIRE_MINUTES must be positive.")

    backend = env.get("STORAGE_BACKEND", "memory").lower()
    database_url = env.get("DATABASE_URL") or None
    if backend == "sql" and not database_url:
        raise ValueError("DATABASE_URL environment variable not set.")

    origins = tuple(o.strip() for o in env.get("CORS_ORIGINS", "*").split(",") if o.strip())

    return Settings(
        secret_key=secret_key,
        algorithm=algorithm,
        access_token_expire_minutes=expire_minutes,
        storage_backend=backend,
        database_url=database_url,
        bcrypt_rounds=_int(env, "BCRYPT_ROUNDS", 12),
        cors_origins=origins or ("*",),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )


# PUBLIC_INTERFACE
def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
