"""Configuration using pydantic-settings."""

from pydantic_settings import BaseSettings


class ClonerSettings(BaseSettings):
    """Cloner configuration."""

    timeout: float = 10.0
    user_agent: str | None = None
    max_workers: int = 16
    max_connections: int = 100
    max_keepalive_connections: int = 20

    output_dir: str = "cloned-site"
    max_depth: int = 1
    resources_dir: str = "resources"
    unique_asset_names: bool = True

    model_config = {"env_prefix": "CLONER_"}


settings = ClonerSettings()
