"""
Rate limiter configuration using SlowAPI.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from gameclub.config import settings

# Keyed by the client's IP address; credential endpoints use settings.auth_rate_limit
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
