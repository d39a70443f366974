"""
Core utilities shared across the bizops data layer.

This package hosts:
- configuration helpers (env vars, paths, default windows)
- logging setup
- date/time helpers used by repositories and services
"""
