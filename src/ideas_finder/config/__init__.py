"""Configuration package -- typed, validated settings from YAML + .env."""

from .settings import ModelSettings, PipelineSettings, StoreSettings

__all__ = [
    "ModelSettings",
    "PipelineSettings",
    "StoreSettings",
    "load_all_settings",
]


def load_all_settings() -> tuple[StoreSettings, ModelSettings, PipelineSettings]:
    """Load and return all configuration objects.

    Returns a tuple of (StoreSettings, ModelSettings, PipelineSettings),
    each populated from its own YAML file with environment variable overrides.
    """
    return StoreSettings(), ModelSettings(), PipelineSettings()
