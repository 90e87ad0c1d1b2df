"""Scrape a web novel's table of contents into per-volume EPUB or PDF files."""

__version__ = "1.0.0"
