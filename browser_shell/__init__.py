"""
Browser Shell - a desktop browser shell around Qt WebEngine.

Classifies address bar input, keeps per-tab back/forward history and
persists settings, bookmarks and history without blocking the UI thread.
"""

__version__ = "0.1.0"
__author__ = "Browser Shell Contributors"
