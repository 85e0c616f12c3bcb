from typing import Literal

from .base import Settings as BaseSettings


class Settings(BaseSettings):
    """
    Settings for the staging deployment: a real request source and decision
    sink, with more time allowed for decisions to come back.
    """

    ENVIRONMENT: Literal["local", "staging", "production"] = "staging"
    GATEWAY_PROVIDER: Literal["memory", "http"] = "http"
    DECISION_TIMEOUT_SECONDS: float = 20.0
