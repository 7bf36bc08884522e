"""
Security utilities: host authentication and guest rate limiting
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import time
from collections import defaultdict

from whispqr.core.config import settings
from whispqr.services.errors import AuthorizationError
from whispqr.services.identity import HostIdentity

# Simple in-memory rate limiter, keyed by client IP and never persisted
rate_limiter = defaultdict(list)

security = HTTPBearer()

async def get_current_host(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> HostIdentity:
    """Resolve the bearer token to the host identity"""
    gateway = request.app.state.services.identity
    try:
        return await run_in_threadpool(gateway.resolve, credentials.credentials)
    except AuthorizationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message
        ) from exc

def rate_limit_check(client_ip: str, limit: int = None) -> bool:
    """Simple rate limiting by IP address"""
    if limit is None:
        limit = settings.RATE_LIMIT_PER_MINUTE

    current_time = time.time()
    minute_ago = current_time - 60

    # Clean old requests
    rate_limiter[client_ip] = [
        req_time for req_time in rate_limiter[client_ip]
        if req_time > minute_ago
    ]

    # Check limit
    if len(rate_limiter[client_ip]) >= limit:
        return False

    # Add current request
    rate_limiter[client_ip].append(current_time)
    return True

def get_client_ip(request) -> str:
    """Extract client IP from request"""
    # Check for forwarded IP first (for reverse proxy setups)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    # Check for real IP header
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    # Fall back to direct client IP
    return request.client.host if request.client else "unknown"
