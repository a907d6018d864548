"""
core/limiter.py -- Shared slowapi rate limiter instance.

api/main.py mounts it as middleware; web/routes.py applies @limiter.limit()
to POST /login. Lives in core/ so both layers can reach it without importing
each other. A single shared instance means every route shares the same
in-memory counter store.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
