"""
leetcoach Integrations - External service integrations.

This module contains:
- leetify: Leetify public API client (profile + match endpoints)
- steam: Steam ID parsing and conversion
"""

__all__: list[str] = []
