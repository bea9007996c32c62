import logging.config
from typing import Optional

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Licensing API Configuration
    LICENSE_API_URL: str = "https://api.freemius.com"
    LICENSE_API_CONNECT_TIMEOUT: float = 10
    LICENSE_API_TIMEOUT: float = 60
    LICENSE_API_MAX_REDIRECTS: int = 5
    LICENSE_API_VERIFY_SSL: bool = True
    CHECKOUT_URL: str = "https://checkout.freemius.com"

    # Product Info
    PLUGIN_ID: str = ""
    PLUGIN_SLUG: str = ""
    PLUGIN_PUBLIC_KEY: str = ""
    PLUGIN_DISTRIBUTION: str = ""  # Installed distribution used for name/version/author
    PLUGIN_IS_PREMIUM: bool = True
    PLUGIN_HAS_ADDONS: bool = False

    # Host Info
    SITE_URL: str = "http://localhost:8000"
    SITE_INSTANCE_ID: str = ""  # Generated on first run
    PLATFORM_VERSION: str = "1.0.0"

    # Database
    DATABASE_URL: str = "sqlite:///./license_client.db"
    OPTION_KEY: str = "license_client_activation_data"
    CACHE_PREFIX: str = "license_client"

    # Cache Policy
    CACHE_TTL_SECONDS: int = 60 * 60 * 24
    REQUEST_THROTTLE_SECONDS: int = 60 * 5

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "INFO",
    },
}

def configure_logging(level: Optional[str] = None):
    """
    Apply the LOGGING dict config with the configured level.
    """
    config = dict(LOGGING)
    config["root"] = dict(LOGGING["root"], level=(level or settings.LOG_LEVEL).upper())
    logging.config.dictConfig(config)
