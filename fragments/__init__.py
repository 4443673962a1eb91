"""Fragments — versioned, typed content storage with format conversion.

Owners store small text, data and image fragments; every content
replacement snapshots the previous state as a numbered version, and
reads can convert stored bytes into another representation on the fly.
"""

__version__ = "0.1.0"
