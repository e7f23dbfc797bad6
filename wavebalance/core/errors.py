from __future__ import annotations


class ConfigError(ValueError):
    """Invalid or missing run configuration. Raised before any wave is simulated."""
