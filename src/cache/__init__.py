# src/cache/__init__.py — v1
"""Compiled-pattern cache."""
