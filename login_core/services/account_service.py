# =============================================================================
# login_core/services/account_service.py
# Account Policy: registration, sign-in, password change
# =============================================================================

from __future__ import annotations
from typing import Optional

from login_core.auth import (
    UserSession,
    validate_password_change,
    validate_registration,
    validate_sign_in,
)
from login_core.errors import InvalidCredentialsError
from login_core.models import (
    PasswordChangeResult,
    RegistrationResult,
    UserRecord,
    UserRole,
)
from login_core.offline import CredentialReconciler, HybridUserDal
from .base_service import BaseService


class AccountService(BaseService):
    """
    Policy layer above HybridUserDal.

    Validates input before any storage call, promotes the very first user
    to Admin and hides which store rejected a sign-in.

    Usage:
        accounts = AccountService(users, session, reconciler)
        result = await accounts.register("Ada", "Lovelace", "ada@x.com", "secret1", "secret1")
        user = await accounts.sign_in("ada@x.com", "secret1")
    """

    def __init__(
        self,
        users: HybridUserDal,
        session: UserSession,
        reconciler: CredentialReconciler,
    ):
        super().__init__()
        self.users = users
        self.session = session
        self.reconciler = reconciler

    @property
    def current_user(self) -> Optional[UserRecord]:
        return self.session.current_user

    @property
    def is_admin(self) -> bool:
        return self.session.is_admin

    async def register(
        self,
        name: str,
        lastname: str,
        email: str,
        password: str,
        confirm_password: str,
    ) -> RegistrationResult:
        """
        Register a new user.

        Raises:
            ValidationError: on malformed input, before anything is stored
        """
        email = validate_registration(name, lastname, email, password, confirm_password)

        role = UserRole.ADMIN if await self.users.count() == 0 else UserRole.USER
        record = UserRecord(
            name=name.strip(),
            lastname=lastname.strip(),
            email=email,
            username=email,
            password=password,
            role=role,
        )

        with self.log_operation(f"Registering {email}"):
            result = await self.users.register(record)

        if result.success and role == UserRole.ADMIN:
            self.logger.info(f"First user {email} registered as Admin")
        return result

    async def sign_in(self, email: str, password: str) -> UserRecord:
        """
        Sign in against whichever store is available.

        Raises:
            ValidationError: empty email or password
            InvalidCredentialsError: neither store accepted the credentials
        """
        email = validate_sign_in(email, password)
        user = await self.users.sign_in(email, password)
        if user is None:
            raise InvalidCredentialsError()
        return user

    async def sign_out(self) -> None:
        await self.users.sign_out()

    async def change_password(
        self,
        email: str,
        old_password: str,
        new_password: str,
        confirm_password: str,
    ) -> PasswordChangeResult:
        """
        Change a password.

        Raises:
            ValidationError: missing fields, too short, mismatch, unchanged
        """
        validate_password_change(old_password, new_password, confirm_password)
        email = validate_sign_in(email, old_password)
        return await self.users.change_password(email, old_password, new_password)

    def pending_password_change_for_current_user(self) -> Optional[UserRecord]:
        """The signed-in user's record when it holds an unsynced password change."""
        user = self.session.current_user
        if user is None:
            return None
        for record in self.reconciler.users_with_pending_password_change():
            if record.id == user.id:
                return record
        return None

    async def sync_pending_password(self, old_password: str, new_password: str) -> PasswordChangeResult:
        """Reconcile the signed-in user's pending password change."""
        user = self.session.current_user
        if user is None:
            return PasswordChangeResult.failure("Nobody is signed in.", error_code="NOT_AUTHENTICATED")
        return await self.reconciler.sync_password_change(user.id, old_password, new_password)
