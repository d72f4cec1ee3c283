from typing import Any

from .settings import Settings, get_settings


def env(key: str, default: Any = None) -> Any:
    """Read a setting by name, falling back to raw environment values.

    Declared fields go through pydantic validation; anything else is picked up
    from the extra values `Settings` keeps (``extra="allow"``).
    """
    settings = get_settings()

    value = getattr(settings, key.upper(), None)
    if value is not None:
        return value

    extras = settings.model_extra or {}
    value = extras.get(key.lower(), extras.get(key.upper()))
    return default if value is None else value


__all__ = ["Settings", "env", "get_settings"]
