"""
romshelf - IGDB metadata enrichment for local ROM libraries

Scans a ROM directory tree, matches each game against the IGDB catalog
and writes per-console JSON libraries for a desktop front-end.
"""

__version__ = "0.3.0"
