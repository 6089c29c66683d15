"""Car allocation algorithms"""

from .nearest_car import NearestIdleCarStrategy

__all__ = ['NearestIdleCarStrategy']
