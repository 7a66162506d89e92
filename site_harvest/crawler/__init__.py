# site_harvest/crawler/__init__.py
"""Traversal: frontier, page fetching and the crawl loop."""
