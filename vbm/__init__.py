"""
Volleyball manager backend: league standings, match simulation, rosters.
"""

__version__ = "0.4.0"
