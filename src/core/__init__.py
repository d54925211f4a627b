"""
Core Module - Shared infrastructure for the API and CLI entry points.

Components:
- logs: loguru sink configuration
"""
