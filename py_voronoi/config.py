"""Configuration management."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Site generation
    default_width: float = Field(default=800.0, gt=0, description="Default canvas width")
    default_height: float = Field(default=600.0, gt=0, description="Default canvas height")
    random_margin: float = Field(
        default=0.05, ge=0, lt=0.5, description="Fraction of each side kept free of random sites"
    )
    max_sites: int = Field(default=20000, gt=0, description="Largest site set the API accepts")
    default_seed: str = Field(default="default", description="Seed for the shared PRNG")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: Literal["json", "console"] = Field(default="json", description="Log renderer")

    class Config:
        env_file = ".env"
        env_prefix = "VORONOI_"


settings = Settings()
