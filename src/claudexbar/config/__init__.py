"""Configuration for ClaudexBar."""

from .loader import get_config_path, load_config
from .schema import BarConfig

__all__ = ["BarConfig", "get_config_path", "load_config"]
