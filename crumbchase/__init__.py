"""Crumb Chase - a grid pursuit game with a tabular Q-Learning seeker.

The seeker runs for the goal on the left edge while hunters chase it with A*.
Every cell the seeker leaves becomes a crumb that blocks the seeker and only
slows the hunters.
"""

__version__ = "1.0.0"
__author__ = "Crumb Chase Demo"
