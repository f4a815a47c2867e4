"""
Authentication Utilities
=======================

Shared-secret checks for trusted clients.
Trusted clients present a secret in a request header to skip rate limiting.
"""

import hashlib
import hmac

from starlette.requests import Request

from html_to_image.config.settings import Settings


def get_secret_hash(secret: str) -> str:
    """
    Hash a secret for storage and comparison.

    Args:
        secret: Secret to hash

    Returns:
        Hex encoded SHA-256 digest
    """
    return hashlib.sha256(secret.encode()).hexdigest()


def is_rate_limit_bypassed(request: Request, settings: Settings) -> bool:
    """
    Check whether the request carries a valid rate limit bypass secret.

    The secret is compared against ``rate_limit_bypass_secret`` and against the
    digests in ``rate_limit_bypass_secret_hashes``. Without any configured
    secret no request bypasses the limiter.
    """
    provided = request.headers.get(settings.rate_limit_bypass_header)
    if not provided:
        return False

    secret = settings.rate_limit_bypass_secret
    if secret and hmac.compare_digest(provided.encode(), secret.encode()):
        return True

    return get_secret_hash(provided) in settings.rate_limit_bypass_secret_hashes
