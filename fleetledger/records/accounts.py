"""Mini README: Account registration, sign-in and profile maintenance.

Structure:
    * WORK_ID_PATTERN / validate_work_id - the work ID format rules.
    * AccountService - register, sign in, request a password reset and
      change the profile picture.

A work ID is ``IA00`` followed by one or two digits and must appear inside
the account's email address. That binding is a weak business rule rather than
an identity proof and is enforced exactly as stated, no more.
"""

from __future__ import annotations

import re

from ..blobs import BlobStorage
from ..errors import ValidationError
from ..logging_utils import get_logger
from ..session import SessionContext, SessionManager
from ..store import RecordStore
from ..store.paths import user_path

LOGGER = get_logger(__name__)

WORK_ID_PATTERN = re.compile(r"^IA00[0-9]{1,2}$")


def validate_work_id(work_id: str) -> None:
    if not WORK_ID_PATTERN.match(work_id or "") or int(work_id[4:]) >= 100:
        raise ValidationError("Invalid Work ID.")


def work_id_matches_email(email: str, work_id: str) -> bool:
    return bool(work_id) and work_id in (email or "")


class AccountService:
    """User-facing account operations built on the session manager."""

    def __init__(self, store: RecordStore, sessions: SessionManager, blobs: BlobStorage) -> None:
        self.store = store
        self.sessions = sessions
        self.blobs = blobs

    async def register(
        self, email: str, password: str, confirm_password: str, work_id: str
    ) -> SessionContext:
        """Create the account, store its work ID and open a signed-in session."""

        validate_work_id(work_id)
        if not work_id_matches_email(email, work_id):
            raise ValidationError("Work ID does not match the email address.")
        if password != confirm_password:
            raise ValidationError("Passwords do not match.")

        auth = self.sessions.new_auth()
        principal = await auth.create_user(email, password)
        await self.store.set(user_path(principal.uid), {"workId": work_id, "email": email})
        LOGGER.info("Account %s created with work ID %s", principal.uid, work_id)
        return await self.sessions.adopt(auth)

    async def sign_in(self, email: str, password: str) -> SessionContext:
        return await self.sessions.sign_in(email, password)

    async def request_password_reset(self, email: str, work_id: str) -> None:
        if not work_id_matches_email(email, work_id):
            raise ValidationError("Work ID does not match the email address.")
        auth = self.sessions.new_auth()
        await auth.send_password_reset_email(email)

    async def update_profile_photo(
        self, context: SessionContext, filename: str, content: bytes
    ) -> str:
        """Upload a profile picture and point the principal's photo URL at it."""

        if not filename or not content:
            raise ValidationError("Please choose a picture to upload.")
        url = await self.blobs.upload(f"profile-pics/{filename}", content)
        await context.auth.update_profile(photo_url=url)
        LOGGER.info("Profile picture updated for %s", context.guard.require_principal().uid)
        return url
