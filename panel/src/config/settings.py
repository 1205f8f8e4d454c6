"""
Application settings for the panel backend.

Centralized settings loaded from environment variables.
"""

from datetime import timedelta
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


DEFAULT_LOOKUP_LIST_LIMIT = 1000


class AppSettings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment Variables:
        PANEL_ASSOCIATIONS_LOOKUP_LIST_LIMIT: Maximum number of records listed
            in a belongs-to select before it is truncated (default: 1000)
        PANEL_FORM_SESSION_TTL_MINUTES: Idle lifetime of a form session
            (default: 60)
    """

    associations_lookup_list_limit: int = Field(
        default=DEFAULT_LOOKUP_LIST_LIMIT,
        validation_alias="PANEL_ASSOCIATIONS_LOOKUP_LIST_LIMIT",
        ge=1,
        description="Maximum number of candidate records rendered in a belongs-to select",
    )

    form_session_ttl_minutes: int = Field(
        default=60,
        validation_alias="PANEL_FORM_SESSION_TTL_MINUTES",
        ge=1,
        le=24 * 60,
    )

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True

    @property
    def form_session_ttl(self) -> timedelta:
        """Form session lifetime as a timedelta."""
        return timedelta(minutes=self.form_session_ttl_minutes)


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get cached application settings instance.

    Call ``get_settings.cache_clear()`` after changing the environment so the
    next lookup picks the new values up.
    """
    return AppSettings()
