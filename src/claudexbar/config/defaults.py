"""Default configuration for ClaudexBar."""

from .schema import BarConfig


def get_default_config() -> BarConfig:
    """Generate the default configuration."""
    return BarConfig()
