# app/auth.py
"""
Authentification Clerk.

1. cookie de session Clerk (`__session`, même origine)
2. sinon `Authorization: Bearer <jwt>` (requêtes cross-origin)

Les deux jetons sont des JWT RS256 vérifiés contre le JWKS de l'instance
Clerk. Le JWKS est récupéré au premier usage puis gardé pour la durée du
process (voir get_jwks_provider).
"""
import logging
import threading
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Dict, Optional

import jwt
from fastapi import Depends, Request
from sqlalchemy import func
from sqlmodel import Session, select

from app.config import settings
from app.db.session import get_session
from app.errors import ApiError
from app.models.employee import ADMIN_ROLES, Employee, Role
from app.services.clerk_client import ClerkClient, ClerkError

log = logging.getLogger("uvicorn.error")

SESSION_COOKIE = "__session"
ALGORITHMS = ["RS256"]
JWKS_CACHE_SECONDS = 10 ** 9  # durée de vie du process


class JwksNotConfigured(RuntimeError):
    pass


class JwksProvider:
    """Clés de signature Clerk, chargées à la demande et jamais invalidées."""

    def __init__(self, jwks_url: str) -> None:
        self.jwks_url = jwks_url
        self._client: Optional[jwt.PyJWKClient] = None
        self._lock = threading.Lock()

    def _jwk_client(self) -> jwt.PyJWKClient:
        if self._client is None:
            with self._lock:
                if self._client is None:
                    if not self.jwks_url:
                        raise JwksNotConfigured("CLERK_JWKS_URL not configured")
                    self._client = jwt.PyJWKClient(self.jwks_url, cache_keys=True, lifespan=JWKS_CACHE_SECONDS)
        return self._client

    def signing_key(self, token: str) -> Any:
        return self._jwk_client().get_signing_key_from_jwt(token).key

    def verify(self, token: str) -> Dict[str, Any]:
        return jwt.decode(
            token,
            self.signing_key(token),
            algorithms=ALGORITHMS,
            options={"verify_aud": False, "require": ["sub", "exp"]},
        )


@lru_cache(maxsize=1)
def get_jwks_provider() -> JwksProvider:
    return JwksProvider(settings.jwks_url)


def get_clerk_client() -> ClerkClient:
    return ClerkClient()


@dataclass(frozen=True)
class AuthUser:
    user_id: str
    source: str  # session | bearer


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization") or ""
    if not header.startswith("Bearer "):
        return None
    return header[7:].strip() or None


def _session_user(request: Request, provider: JwksProvider) -> Optional[AuthUser]:
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        return None
    try:
        claims = provider.verify(token)
    except jwt.PyJWTError as e:
        log.debug("[auth] session cookie rejected: %s", e)
        return None
    sub = claims.get("sub")
    return AuthUser(user_id=str(sub), source="session") if sub else None


def require_user(
    request: Request,
    provider: JwksProvider = Depends(get_jwks_provider),
) -> AuthUser:
    try:
        user = _session_user(request, provider)
        if user is not None:
            return user

        token = _bearer_token(request)
        if token is None:
            raise ApiError(401, "Unauthorized", "Authentication required")

        try:
            claims = provider.verify(token)
        except jwt.PyJWTError as e:
            log.warning("[auth] JWT verification failed: %s", e)
            raise ApiError(401, "Unauthorized", "Invalid or expired token")

        sub = claims.get("sub")
        if not sub:
            raise ApiError(401, "Unauthorized", "Invalid token: no subject")
        return AuthUser(user_id=str(sub), source="bearer")

    except ApiError:
        raise
    except Exception:
        log.exception("[auth] unexpected error")
        raise ApiError(500, "Internal Server Error", "Authentication failed")


def optional_user(
    request: Request,
    provider: JwksProvider = Depends(get_jwks_provider),
) -> Optional[AuthUser]:
    try:
        return require_user(request, provider)
    except ApiError:
        return None


def user_email(user: AuthUser, clerk: ClerkClient) -> Optional[str]:
    try:
        return clerk.get_user_email(user.user_id)
    except ClerkError as e:
        log.error("[auth] Clerk user lookup failed: %s", e)
        raise ApiError(401, "Unauthorized", "User not found")


def find_employee(session: Session, email: str) -> Optional[Employee]:
    stmt = select(Employee).where(func.lower(Employee.email) == email.strip().lower())
    return session.exec(stmt).first()


def require_role(*allowed: Role) -> Callable[..., Employee]:
    allowed_roles = tuple(allowed)

    def dependency(
        user: AuthUser = Depends(require_user),
        session: Session = Depends(get_session),
        clerk: ClerkClient = Depends(get_clerk_client),
    ) -> Employee:
        email = user_email(user, clerk)
        if not email:
            raise ApiError(403, "Forbidden", "No email associated with account")

        employee = find_employee(session, email)
        if employee is None:
            raise ApiError(403, "Forbidden", "Access denied - not registered as employee")
        if not employee.is_active:
            raise ApiError(403, "Forbidden", "Account is deactivated")
        if employee.role not in allowed_roles:
            raise ApiError(
                403, "Forbidden",
                "Required roles: " + ", ".join(r.value for r in allowed_roles),
            )
        return employee

    return dependency


require_admin = require_role(*ADMIN_ROLES)
