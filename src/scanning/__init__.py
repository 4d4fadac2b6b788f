# src/scanning/__init__.py — v1
"""Line-level scanners for text and markup entries."""
