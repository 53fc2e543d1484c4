# epireport/config/__init__.py
# Exposes the singleton 'settings' instance for the rest of the engine.

from .settings import settings

__all__ = ["settings"]
