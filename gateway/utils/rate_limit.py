from slowapi import Limiter
from slowapi.util import get_remote_address

# Keyed by client IP; the gateway has no user identity to key on.
limiter = Limiter(key_func=get_remote_address)
