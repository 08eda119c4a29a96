"""Configuration management."""

import os
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env for local/dev environments only where values are missing from the environment
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    missing_keys = {k: v for k, v in file_env.items() if k not in os.environ and v is not None}
    for k, v in missing_keys.items():
        os.environ[k] = v


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    model_config = SettingsConfigDict(env_prefix="PY_LEM_", extra="ignore")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Logging format (console or json)")

    # Solver Configuration
    max_iteration: Optional[int] = Field(
        default=None, ge=1, description="Iteration bound, None to iterate until stable"
    )
    m_exponent: float = Field(default=0.5, gt=0.0, description="Stream power drainage area exponent")
    convergence_tolerance: float = Field(
        default=0.0, ge=0.0, description="Largest elevation change still counted as unchanged"
    )
    seed: int = Field(default=0, description="Seed for the initial tie-breaking perturbation")


# Instantiate singleton settings object
settings = Settings()
