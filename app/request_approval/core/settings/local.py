from typing import Literal

from .base import Settings as BaseSettings


class Settings(BaseSettings):
    """Settings for local development."""

    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
