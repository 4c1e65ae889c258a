"""
Security utilities and authentication
"""

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import time
from collections import defaultdict
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db import get_db
from app.models import Profile
from app.services.auth_service import AuthService
from app.utils.responses import unauthorized_error, forbidden_error

# Simple in-memory rate limiter
rate_limiter = defaultdict(list)

security = HTTPBearer(auto_error=False)

def _request_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)

def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[Profile]:
    """Resolve the signed-in user from the bearer token or session cookie"""
    token = _request_token(request, credentials)
    if not token:
        return None
    return AuthService.resolve_token(db, token)

def get_current_user(user: Optional[Profile] = Depends(get_optional_user)) -> Profile:
    """Require a signed-in user"""
    if user is None:
        unauthorized_error("Not authenticated")
    return user

def require_company(user: Profile = Depends(get_current_user)) -> Profile:
    """Require a signed-in user that belongs to a company"""
    if not user.company_id:
        forbidden_error("Please set up your company first.")
    return user

def require_user_manager(user: Profile = Depends(require_company)) -> Profile:
    """Require an admin or superadmin"""
    if not user.can_manage_users:
        forbidden_error("Only admins can manage users")
    return user

def rate_limit_check(client_ip: str, limit: int = None) -> bool:
    """Simple rate limiting by IP address"""
    if limit is None:
        limit = settings.RATE_LIMIT_PER_MINUTE

    current_time = time.time()
    minute_ago = current_time - 60

    # Forget addresses with no request in the last minute
    for ip in [ip for ip, times in rate_limiter.items() if not times or times[-1] <= minute_ago]:
        del rate_limiter[ip]

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
    return request.client.host
