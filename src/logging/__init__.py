# src/logging/__init__.py — v1
"""Logging setup and contextual log fields."""
