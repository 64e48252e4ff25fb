"""
Identity resolution: which profile table owns an account.

Flow:
1. Client signs in with Supabase auth → gets an access token
2. Backend fetches the account for the token (auth.get_user)
3. Backend probes `students` then `teachers` by user_id
4. Student row wins; a row in both tables is logged as a data inconsistency
5. No row in either table → authenticated, but profile is None

Lookup errors on one table are logged and do not stop the other lookup.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from app.schemas.auth import Profile, StudentProfile, TeacherProfile

logger = logging.getLogger(__name__)

PROFILE_TABLES = (
    ("student", "students", StudentProfile),
    ("teacher", "teachers", TeacherProfile),
)


def _lookup(db, table: str, account_id: str) -> Optional[dict]:
    try:
        result = (
            db.table(table)
            .select("*")
            .eq("user_id", account_id)
            .limit(1)
            .execute()
        )
    except Exception:
        logger.exception("Error fetching %s profile for account %s", table, account_id)
        return None
    if result and result.data:
        return result.data[0]
    return None


def resolve_profile(db, account_id: Optional[str]) -> Optional[Profile]:
    if not account_id:
        return None

    found = []
    for role, table, model in PROFILE_TABLES:
        row = _lookup(db, table, account_id)
        if row is None:
            continue
        try:
            found.append(Profile(role=role, data=model(**row)))
        except ValidationError:
            logger.exception("Malformed %s profile row for account %s", table, account_id)

    if not found:
        logger.info("Account %s has no student or teacher profile", account_id)
        return None

    if len(found) > 1:
        logger.warning(
            "Data inconsistency: account %s has both student and teacher profiles; resolving as student",
            account_id,
        )
    return found[0]


def _account_from(user) -> Optional[dict]:
    if user is None:
        return None
    return {"id": str(user.id), "email": getattr(user, "email", None) or ""}


class AuthSession:
    """
    Session, account and profile for one authenticated context.
    The role resolved at load time does not change afterwards.
    """

    def __init__(self, db):
        self.db = db
        self.access_token: Optional[str] = None
        self.account: Optional[dict] = None
        self.profile: Optional[Profile] = None

    @property
    def role(self) -> Optional[str]:
        return self.profile.role if self.profile else None

    def load(self, access_token: str) -> bool:
        """Verify a token with Supabase auth and resolve its profile."""
        try:
            response = self.db.auth.get_user(access_token)
        except Exception:
            logger.warning("Supabase rejected access token", exc_info=True)
            return False

        user = getattr(response, "user", None)
        if user is None:
            return False

        self.access_token = access_token
        self.account = _account_from(user)
        self.profile = resolve_profile(self.db, self.account["id"])
        return True

    def handle_auth_change(self, event: str, session) -> None:
        logger.debug("Auth state change: %s", event)
        user = getattr(session, "user", None) if session else None
        if user is None:
            self.access_token = None
            self.account = None
            self.profile = None
            return

        self.access_token = getattr(session, "access_token", None)
        self.account = _account_from(user)
        self.profile = resolve_profile(self.db, self.account["id"])

    def sign_out(self, revoke: bool = True) -> None:
        token = self.access_token
        self.access_token = None
        self.account = None
        self.profile = None

        if not token or not revoke:
            return
        try:
            self.db.auth.admin.sign_out(token)
        except Exception:
            logger.exception("Error signing out; local session already cleared")
