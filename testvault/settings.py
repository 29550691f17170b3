"""Settings and configuration."""
from typing import Optional
from pydantic_settings import BaseSettings

# Load .env file if it exists
from dotenv import load_dotenv
load_dotenv()


class Settings(BaseSettings):
    # Security
    encryption_key: Optional[str] = None
    dev_mode: bool = False

    # Test data
    test_env: str = "test"
    test_data_dir: str = "test-data"
    cleanup_strategy: str = "auto"

    # API
    api_base_url: str = "https://api.example.com"
    api_cleanup_url: Optional[str] = None
    api_timeout_seconds: float = 10.0

    # Role credentials
    admin_username: str = "admin@example.com"
    user_username: str = "user@example.com"
    guest_username: str = "guest@example.com"
    encrypted_admin_password: Optional[str] = None
    encrypted_user_password: Optional[str] = None
    encrypted_guest_password: Optional[str] = None

    model_config = {
        "env_file": ".env",
        "extra": "ignore"
    }


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()
