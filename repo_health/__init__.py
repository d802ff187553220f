"""
Repo Health Score: a composite 0-100 health score for GitHub repositories.
"""

__version__ = "0.1.0"
