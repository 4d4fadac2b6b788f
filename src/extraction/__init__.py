# src/extraction/__init__.py — v1
"""Archive access, content extraction and OPF metadata."""
