import os

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Global Limiter instance imported by controllers. create_app() sets
# RATELIMIT_ENABLED from RATE_LIMIT_ENABLED before init_app, so tests run
# without limits.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["500 per hour", "100 per minute"],
    storage_uri=os.getenv("LIMITER_STORAGE_URI", "memory://"),
)

LOGIN_LIMIT = "5 per minute;20 per hour"
