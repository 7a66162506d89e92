# site_harvest/assets/__init__.py
"""Content-addressable asset storage: paths, registry, downloader, manifest."""
