"""
Auth router — Sign up, Sign in, Federated sign in, Sign out, Current profile.

Rules:
- Students and teachers sign up separately; the role travels as user metadata
  and the profile rows are created by the database from that metadata
- The role is never read from the token: it is resolved from the profile tables
- Mock mode: uses mock-{account_id} tokens for testing
"""

import logging
import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from app.core.config import settings
from app.core.database import create_auth_client, get_supabase
from app.core.security import get_auth_session, get_current_user, mock_token_for, session_to_user
from app.schemas.auth import StudentSignUp, TeacherSignUp, UserLogin
from app.services.identity import AuthSession, resolve_profile
from app.utils.response import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def _sign_up(email: str, password: str, metadata: dict) -> dict:
    if settings.AUTH_MODE == "mock":
        # No auth trigger in mock mode: write the profile row directly
        db = get_supabase()
        table = "students" if metadata["role"] == "student" else "teachers"
        existing = db.table(table).select("id").eq("email", email).limit(1).execute()
        if existing.data:
            raise HTTPException(status_code=400, detail="An account with this email already exists")
        account_id = str(uuid.uuid4())
        profile = {k: v for k, v in metadata.items() if k != "role"}
        db.table(table).insert({"user_id": account_id, "email": email, **profile}).execute()
        return {"user_id": account_id, "mock_token": mock_token_for(account_id)}

    try:
        response = create_auth_client().auth.sign_up({
            "email": email,
            "password": password,
            "options": {
                "email_redirect_to": f"{settings.SITE_URL}/",
                "data": metadata,
            },
        })
    except Exception as e:
        logger.warning("Sign up failed for %s: %s", email, e)
        raise HTTPException(status_code=400, detail=str(e))

    user = getattr(response, "user", None)
    return {"user_id": str(user.id) if user else None}


@router.post("/signup/student")
async def student_signup(body: StudentSignUp):
    data = _sign_up(body.email, body.password, {
        "name": body.name,
        "role": "student",
        "register_number": body.register_number,
        "department": body.department,
        "section": body.section,
    })
    return success_response(data=data, message="Please check your email to verify your account.")


@router.post("/signup/teacher")
async def teacher_signup(body: TeacherSignUp):
    data = _sign_up(body.email, body.password, {
        "name": body.name,
        "role": "teacher",
    })
    return success_response(data=data, message="Please check your email to verify your account.")


@router.post("/login")
async def login(body: UserLogin):
    """
    Email + password sign in.

    Mock mode: find the profile by email (students first), return a mock token.
    Supabase mode: sign in with Supabase auth, return its tokens.
    `user` has the same shape as the /me payload.
    """
    db = get_supabase()

    if settings.AUTH_MODE == "mock":
        for table in ("students", "teachers"):
            result = db.table(table).select("user_id").eq("email", body.email).limit(1).execute()
            if result.data:
                account_id = result.data[0]["user_id"]
                session = AuthSession(db)
                session.access_token = mock_token_for(account_id)
                session.account = {"id": account_id, "email": body.email}
                session.profile = resolve_profile(db, account_id)
                return success_response(
                    data={"token": session.access_token, "user": session_to_user(session)},
                    message="Login successful",
                )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No registered account found for this email.",
        )

    try:
        response = create_auth_client().auth.sign_in_with_password({
            "email": body.email,
            "password": body.password,
        })
    except Exception as e:
        logger.info("Sign in failed for %s: %s", body.email, e)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    session = AuthSession(db)
    session.handle_auth_change("SIGNED_IN", response.session)
    return success_response(
        data={
            "token": response.session.access_token,
            "refresh_token": response.session.refresh_token,
            "user": session_to_user(session),
        },
        message="Login successful",
    )


@router.get("/oauth")
async def oauth_sign_in(provider: str | None = None):
    """Return the provider URL the client should redirect to."""
    if settings.AUTH_MODE == "mock":
        raise HTTPException(status_code=400, detail="Federated sign in is not available in mock mode")

    try:
        response = create_auth_client().auth.sign_in_with_oauth({
            "provider": provider or settings.OAUTH_PROVIDER,
            "options": {"redirect_to": f"{settings.SITE_URL}/dashboard"},
        })
    except Exception as e:
        logger.warning("OAuth sign in failed: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    return success_response(data={"url": response.url, "provider": response.provider})


@router.post("/logout")
async def logout(session: AuthSession = Depends(get_auth_session)):
    session.sign_out(revoke=settings.AUTH_MODE == "supabase")
    return success_response(message="Signed out")


@router.get("/me")
async def get_me(user: dict = Depends(get_current_user)):
    """Return the current account and its profile (null when none exists)."""
    return success_response(data=user)
