# src/search/__init__.py — v1
"""Directory walking, pipeline and search orchestration."""
