import logging

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # fields that may appear in .env
    secret_key: str = "dev_secret"
    access_token_expire_minutes: int = 120

    database_url: str = "sqlite:///./moveops.db"

    log_level: str = "INFO"
    log_format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()


def setup_logging(cfg: Settings) -> logging.Logger:
    """Attach one console handler to the root logger (idempotent)."""
    level = getattr(logging, cfg.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    if not any(getattr(h, "_moveops", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(cfg.log_format))
        handler._moveops = True
        root.addHandler(handler)

    # chatty third-party loggers
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.WARNING)

    return root
