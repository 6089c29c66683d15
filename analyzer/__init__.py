"""
Elevator Bank Analyzer

Statistical analysis and reporting tools for simulation runs.

Components:
- Statistics: broadcast-pipe recorder, summaries, JSON Lines log, trajectory plot
"""

__version__ = "0.1.0"

from .statistics import Statistics

__all__ = ['Statistics']
