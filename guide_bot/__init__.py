"""Core package for the class guide bot.

The data models, stores and engines are importable without touching
``discord``; only :mod:`guide_bot.bot`, :mod:`guide_bot.ui` and
:mod:`guide_bot.commands` need the Discord library at import time.
"""

from .core.models import GuideDocument, GuideKey, ServerConfig
from .data.guides import GuideStore
from .data.sessions import SessionStore
from .permissions import PermissionEngine

__all__ = [
    "GuideDocument",
    "GuideKey",
    "GuideStore",
    "PermissionEngine",
    "ServerConfig",
    "SessionStore",
]
