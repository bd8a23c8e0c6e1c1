"""
Configuration settings for the application.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Storage settings
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "memory")
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    PRODUCTS_HASH_KEY: str = os.getenv("PRODUCTS_HASH_KEY", "products")

    # Capacity bounds applied to every stored record (uuid4 keys are 36 bytes)
    PRODUCT_MAX_KEY_BYTES: int = int(os.getenv("PRODUCT_MAX_KEY_BYTES", "44"))
    PRODUCT_MAX_VALUE_BYTES: int = int(os.getenv("PRODUCT_MAX_VALUE_BYTES", "1024"))

    @property
    def is_production(self) -> bool:
        """
        Check if running in production environment.
        """
        return self.ENVIRONMENT.lower() == "production"

    @property
    def uses_redis(self) -> bool:
        """Return True when products are persisted in Redis."""
        return self.STORAGE_BACKEND.lower() == "redis"

    def __init__(self):
        self.debug = os.getenv("DEBUG", "false").lower() == "true"
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        logging.basicConfig(level=self.log_level)
        self.logger = logging.getLogger(__name__)

        self.logger.debug(
            f"Config initialized with environment={self.ENVIRONMENT}, "
            f"storage={self.STORAGE_BACKEND}, debug={self.debug}, "
            f"log_level={self.log_level}"
        )


# Create a global settings instance for import
settings = Settings()
