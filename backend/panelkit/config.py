"""
panelkit/config.py

Panel framework settings, read from the environment (PANELKIT_ prefix) or .env
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Framework settings"""

    # Application
    APP_NAME: str = "panelkit"
    APP_URL: str = "http://localhost"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./panelkit.db"

    # JWT
    SECRET_KEY: str = "panelkit-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # Naming conventions
    LOCALE: str = "en"
    MODEL_NAMESPACE: str = "app.models"
    RESOURCE_NAMESPACE: str = "resources"
    ROUTE_NAME_PREFIX: str = "filament"

    # Resource defaults
    DEFAULT_NAVIGATION_ICON: str = "heroicon-o-rectangle-stack"
    GLOBAL_SEARCH_RESULTS_LIMIT: int = 50

    model_config = SettingsConfigDict(env_prefix="PANELKIT_", env_file=".env", case_sensitive=True)


# Process-wide settings instance
settings = Settings()
