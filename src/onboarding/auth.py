"""
Email OTP sign-in.

Supabase sends a one-time code to the user's email; verifying it creates the
session whose access token authenticates every backend call. The Supabase
client is synchronous, so its calls run on a worker thread.
"""

import asyncio
import logging

from supabase import Client

from onboarding.state import OnboardingPhase
from onboarding.store import OnboardingStore

logger = logging.getLogger(__name__)

EMAIL_NOT_FOUND = "Email not found. Please try again."
INVALID_OR_EXPIRED = "Invalid or expired code. Please try again."
RESEND_FAILED = "Failed to resend code. Please try again."


def verification_error_message(error: Exception) -> str:
    """User-facing text for a failed code verification."""
    text = str(error)
    lowered = text.lower()
    if "invalid" in lowered or "expired" in lowered:
        return INVALID_OR_EXPIRED
    return text


class OtpAuthFlow:
    """
    The auth and auth_verification screens.

    Args:
        store: Onboarding store holding the pending email and phase
        client: Supabase client; defaults to the shared one from trainer.auth
    """

    def __init__(self, store: OnboardingStore, client: Client | None = None):
        self.store = store
        self._client = client

        self.code = ""
        self.is_loading = False
        self.error_message: str | None = None
        self.access_token: str | None = None

    @property
    def client(self) -> Client:
        if self._client is None:
            from trainer.auth import get_supabase_client

            self._client = get_supabase_client()
        return self._client

    async def _send_otp(self, email: str, create_user: bool) -> None:
        await asyncio.to_thread(
            self.client.auth.sign_in_with_otp,
            {"email": email, "options": {"should_create_user": create_user}},
        )

    async def send_code(self, email: str, returning: bool = False) -> bool:
        """Email a code and move to verification. Returns True when sent."""
        self.is_loading = True
        self.error_message = None
        try:
            self.store.set_pending_email(email)
            if not returning:
                self.store.accept_terms()

            await self._send_otp(email, create_user=not returning)
            await self.store.set_phase(OnboardingPhase.AUTH_VERIFICATION)
            return True
        except Exception as e:
            logger.warning(f"OTP send failed: {e}")
            self.error_message = str(e)
            return False
        finally:
            self.is_loading = False

    async def verify_code(self, code: str | None = None) -> bool:
        """
        Verify the entered code and finish sign-in.

        On failure the entered code is cleared so the user can retry.
        """
        code = self.code if code is None else code
        email = self.store.state.pending_email
        if not email:
            self.error_message = EMAIL_NOT_FOUND
            return False

        self.is_loading = True
        self.error_message = None
        try:
            response = await asyncio.to_thread(
                self.client.auth.verify_otp,
                {"email": email, "token": code, "type": "email"},
            )
        except Exception as e:
            logger.warning(f"OTP verification failed: {e}")
            self.error_message = verification_error_message(e)
            self.code = ""
            self.is_loading = False
            return False

        session = getattr(response, "session", None)
        self.access_token = session.access_token if session else None

        self.store.clear_pending_email()
        try:
            await self.store.complete_auth()
        finally:
            self.is_loading = False
        return True

    async def resend_code(self) -> bool:
        email = self.store.state.pending_email
        if not email:
            return False

        self.is_loading = True
        self.error_message = None
        try:
            await self._send_otp(email, create_user=True)
            return True
        except Exception as e:
            logger.warning(f"OTP resend failed: {e}")
            self.error_message = RESEND_FAILED
            return False
        finally:
            self.is_loading = False

    async def use_different_email(self) -> None:
        self.store.clear_pending_email()
        self.code = ""
        self.error_message = None
        await self.store.set_phase(OnboardingPhase.AUTH)
