"""HTTP middleware."""
from naijapulse.middleware.guest import GuestIdentityMiddleware
from naijapulse.middleware.logging import LoggingMiddleware

__all__ = ["GuestIdentityMiddleware", "LoggingMiddleware"]
