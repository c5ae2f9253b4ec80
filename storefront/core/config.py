from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    # App
    app_name: str = "Storefront"
    debug: bool = False

    # Database
    database_url: str = "sqlite:///./storefront.db"

    # Logging
    log_level: str = "INFO"
    log_dir: str = "./logs"
    log_to_file: bool = False

    # Access guard
    login_path: str = "/auth/login"
    cashier_pos_path: str = "/cashier/pos"
    guard_history_size: int = 100

    # Notifications
    high_value_order_threshold: float = 100.0
    low_stock_threshold: int = 10

    # Cleanup
    notification_retention_days: int = 90
    read_notification_retention_days: int = 30
    audit_log_retention_days: int = 30

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="STOREFRONT_",
        case_sensitive=False,
        extra="ignore"  # Allow extra env vars without raising validation errors
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
