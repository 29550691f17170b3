"""Per-environment test data configuration loader."""
import json
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class PriceRange(BaseModel):
    min: float = 10
    max: float = 1000


class UsersConfig(BaseModel):
    count: int = 10
    roles: List[str] = Field(default_factory=lambda: ["admin", "user", "guest"])
    domains: List[str] = Field(default_factory=lambda: ["example.com", "test.com"])


class ProductsConfig(BaseModel):
    count: int = 50
    categories: List[str] = Field(default_factory=lambda: ["electronics", "clothing", "books", "home"])
    price_range: PriceRange = Field(default_factory=PriceRange)


class ApiConfig(BaseModel):
    base_url: str = "https://api.example.com"
    timeout: int = 10000
    retries: int = 3


class CleanupConfig(BaseModel):
    auto: bool = True
    strategies: List[str] = Field(default_factory=lambda: ["database", "api", "file"])
    retention: str = "24h"


class DataConfig(BaseModel):
    users: UsersConfig = Field(default_factory=UsersConfig)
    products: ProductsConfig = Field(default_factory=ProductsConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    cleanup: CleanupConfig = Field(default_factory=CleanupConfig)


def config_path(data_dir: str, environment: str) -> Path:
    return Path(data_dir) / "config" / f"{environment}.json"


def load_config(data_dir: str, environment: str, api_base_url: Optional[str] = None) -> DataConfig:
    """Load `<data_dir>/config/<environment>.json`, or the defaults if it is missing.

    Args:
        data_dir: Test data root directory.
        environment: Environment name (test, staging, ...).
        api_base_url: Base URL used for the default config.

    Returns:
        Parsed configuration.
    """
    path = config_path(data_dir, environment)

    if not path.exists():
        logger.debug(f"No data config at {path}, using defaults")
        config = DataConfig()
        if api_base_url:
            config.api.base_url = api_base_url
        return config

    with open(path, 'r') as f:
        return DataConfig.model_validate(json.load(f))


def save_config(config: DataConfig, data_dir: str, environment: str) -> None:
    path = config_path(data_dir, environment)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w') as f:
        json.dump(config.model_dump(), f, indent=2)
