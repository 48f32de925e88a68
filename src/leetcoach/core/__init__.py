"""
leetcoach Core - Application plumbing shared by every entry point.

This module contains:
- config: Application configuration management
- logging_setup: Root logger configuration
"""

from leetcoach.core.config import LeetcoachConfig, get_config, load_config
from leetcoach.core.logging_setup import setup_logging

__all__ = [
    "LeetcoachConfig",
    "get_config",
    "load_config",
    "setup_logging",
]
