"""
Security module — Supabase token verification + Mock auth + Role guard.

Auth Flow:
1. User signs in via Supabase auth → gets an access token
2. Frontend sends the token to FastAPI as a Bearer credential
3. FastAPI verifies the token with Supabase auth (auth.get_user)
4. Backend resolves the profile: students first, then teachers
5. Backend injects: user_id (account id), role, profile
6. Role guard lets the request through or answers 403

An account with no profile row is authenticated but has no role; role-guarded
endpoints refuse it, /api/auth/me reports `profile: null`.
"""

import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from app.core.config import settings
from app.core.database import get_supabase
from app.services.identity import AuthSession, resolve_profile

logger = logging.getLogger(__name__)

security_scheme = HTTPBearer()

MOCK_TOKEN_PREFIX = "mock-"


def mock_token_for(account_id: str) -> str:
    return f"{MOCK_TOKEN_PREFIX}{account_id}"


# ---------------------------------------------------------------------------
# Token verification — the core auth function
# ---------------------------------------------------------------------------
async def get_auth_session(
    credentials: HTTPAuthorizationCredentials = Depends(security_scheme),
) -> AuthSession:
    token = credentials.credentials

    if settings.AUTH_MODE == "mock":
        return _mock_session(token)

    return _supabase_session(token)


def _mock_session(token: str) -> AuthSession:
    """Mock mode: `mock-<account_id>` tokens, resolved straight from the profile tables."""
    session = AuthSession(get_supabase())
    if token.startswith(MOCK_TOKEN_PREFIX):
        account_id = token[len(MOCK_TOKEN_PREFIX):]
        profile = resolve_profile(session.db, account_id)
        if profile:
            session.access_token = token
            session.account = {"id": account_id, "email": profile.data.email}
            session.profile = profile
            return session

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token. Use mock-<account_id> for a registered student or teacher.",
    )


def _supabase_session(token: str) -> AuthSession:
    session = AuthSession(get_supabase())
    if not session.load(token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired access token",
        )
    return session


def session_to_user(session: AuthSession) -> dict:
    profile = session.profile
    return {
        "uid": session.account["id"],
        "user_id": session.account["id"],
        "email": session.account["email"],
        "role": session.role,
        "name": profile.data.name if profile else "",
        "profile": profile.data.model_dump() if profile else None,
    }


async def get_current_user(
    session: AuthSession = Depends(get_auth_session),
) -> dict:
    """Return the authenticated user dict, with or without a profile."""
    return session_to_user(session)


# ---------------------------------------------------------------------------
# Role guard dependency
# ---------------------------------------------------------------------------
def require_role(allowed_roles: list[str]):
    """
    Usage:
        @router.get("/teacher-only")
        async def endpoint(user=Depends(require_role(["teacher"]))):
    """

    async def role_checker(
        user: dict = Depends(get_current_user),
    ) -> dict:
        if user["role"] is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="No student or teacher profile exists for this account.",
            )
        if user["role"] not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{user['role']}' not authorized. Required: {allowed_roles}",
            )
        return user

    return role_checker
