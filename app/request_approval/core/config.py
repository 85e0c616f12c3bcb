from enum import StrEnum
from functools import lru_cache

from request_approval.core.settings.base import Settings as BaseSettings
from request_approval.core.settings.local import Settings as LocalSettings
from request_approval.core.settings.production import Settings as ProductionSettings
from request_approval.core.settings.staging import Settings as StagingSettings


class Environment(StrEnum):
    LOCAL = "local"
    STAGING = "staging"
    PRODUCTION = "production"


SETTINGS_BY_ENVIRONMENT: dict[Environment, type[BaseSettings]] = {
    Environment.LOCAL: LocalSettings,
    Environment.STAGING: StagingSettings,
    Environment.PRODUCTION: ProductionSettings,
}


@lru_cache
def _get_settings() -> BaseSettings:
    """
    Load the approval service settings for the environment named by `ENVIRONMENT`.

    Local settings keep the in-memory gateway; staging and production talk to
    the HTTP request source and decision sink.

    Raises:
        pydantic.ValidationError: If `ENVIRONMENT` names no known deployment
    """
    environment = Environment(BaseSettings().ENVIRONMENT)
    return SETTINGS_BY_ENVIRONMENT[environment]()  # type: ignore


settings = _get_settings()
