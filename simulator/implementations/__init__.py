"""Rider source implementations"""

from .random_source import RandomRiderSource
from .scripted_source import ScriptedRiderSource

__all__ = [
    'RandomRiderSource',
    'ScriptedRiderSource',
]
