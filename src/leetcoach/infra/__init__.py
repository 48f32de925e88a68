"""
leetcoach Infrastructure - Persistence for account links, watches and caches.
"""

from leetcoach.infra.database import Database

__all__ = ["Database"]
