"""
mwarchive: MediaWiki Archiver

Walks every page of one or more namespaces through a MediaWiki API and stores
the latest revision of each page in a SQLite database or a plain-text file
tree.
"""

__version__ = "1.0"
__author__ = "mwarchive Project"
__description__ = "MediaWiki Archiver"
