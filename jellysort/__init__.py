"""
JellySort: filename based organizer for TV series and movies
"""

__version__ = "1.0.0"
