"""
Elevator bank dispatch

This package provides the idle-car dispatcher and its pluggable
allocation strategies.
"""

__version__ = "0.1.0"

from .dispatcher import Dispatcher, build_strategy

__all__ = ['Dispatcher', 'build_strategy']
