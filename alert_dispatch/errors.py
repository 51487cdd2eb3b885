from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised while wiring the dispatcher: missing credentials, unknown provider ids, bad schedules."""
