"""Configuration — defaults, option schema, hierarchy loading and registry."""

from memfile.config.defaults import get_defaults
from memfile.config.hierarchy import config_files, load_config_hierarchy
from memfile.config.registry import OptionsRegistry
from memfile.config.schema import CacheOptions

__all__ = [
    "CacheOptions",
    "OptionsRegistry",
    "config_files",
    "get_defaults",
    "load_config_hierarchy",
]
