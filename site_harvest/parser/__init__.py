# site_harvest/parser/__init__.py
"""HTML query helpers."""
