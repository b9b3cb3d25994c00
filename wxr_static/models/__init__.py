"""
Pydantic models for the records written by the generators.
"""

from .story import Download, MapLocation, Quote, SimplePage, UserStory

__all__ = ["Download", "MapLocation", "Quote", "SimplePage", "UserStory"]
