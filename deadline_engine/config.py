"""Engine settings using Pydantic Settings.

Every value can be overridden with a DEADLINE_ENGINE_* environment
variable, e.g. DEADLINE_ENGINE_RENDER_CAP=50.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Limits and defaults for deadline previews."""

    model_config = SettingsConfigDict(
        env_prefix="DEADLINE_ENGINE_",
        extra="ignore",
    )

    render_cap: int = Field(default=24, gt=0, description="Max deadlines returned for display")
    per_rule_cap: int = Field(default=12, gt=0, description="Max occurrences generated per rule")
    default_months_ahead: int = Field(
        default=18, gt=0, description="Window sent to the authoritative recomputation"
    )
    untitled_task_name: str = Field(
        default="Untitled task", description="Name used for rules with a blank task name"
    )


@lru_cache()
def get_settings() -> EngineSettings:
    """Get cached engine settings."""
    return EngineSettings()
