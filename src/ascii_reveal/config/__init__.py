"""Configuration loading and defaults."""

from ascii_reveal.config.schema import (
    DEFAULT_CHAR_SET,
    DEFAULT_SCRAMBLE_EXTRA,
    Config,
    RendererConfig,
    SiteConfig,
    load_config,
)

__all__ = [
    "DEFAULT_CHAR_SET",
    "DEFAULT_SCRAMBLE_EXTRA",
    "Config",
    "RendererConfig",
    "SiteConfig",
    "load_config",
]
