"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings pulled from ``TIN_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="TIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="console", description="Logging format (console or json)")

    # Triangulation
    voronoi_ray_length: float = Field(
        default=500.0, gt=0, description="Length of the ray drawn for unbounded Voronoi cell edges"
    )
    validate_topology: bool = Field(
        default=False, description="Check mesh invariants after every triangulate() call"
    )


settings = Settings()
