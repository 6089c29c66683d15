"""Interface definitions for simulator components"""

from .rider_source import IRiderSource

__all__ = [
    'IRiderSource',
]
