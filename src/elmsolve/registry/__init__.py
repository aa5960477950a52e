"""Metadata providers.

- base.py: DependencyProvider capability interface
- offline.py: packages installed under ELM_HOME
- online.py: package.elm-lang.org with on-disk caches
"""

from .base import DependencyProvider
from .offline import OfflineProvider
from .online import OnlineProvider

__all__ = [
    "DependencyProvider",
    "OfflineProvider",
    "OnlineProvider",
]
