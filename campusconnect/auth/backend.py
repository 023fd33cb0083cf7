"""Database-backed identity provider: accounts, tokens and profiles.

The backend is shared by every browser client. It owns credential checks
(werkzeug password hashes), email confirmation tokens and the issued
access/refresh token pairs. Per-browser state (the current session, the
auth listeners) lives in ``IdentityClient``.
"""
import logging
import secrets
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy.engine import Engine
from sqlmodel import Session, select
from werkzeug.security import check_password_hash, generate_password_hash

from campusconnect.auth.errors import AuthError
from campusconnect.auth.types import AuthSession, AuthUser
from campusconnect.models import Account, AuthToken, Profile, Role

logger = logging.getLogger(__name__)

# Guards lookups against an unexpectedly long chain of rotated tokens.
MAX_ROTATIONS_FOLLOWED = 50


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _to_user(account: Account) -> AuthUser:
    return AuthUser(
        id=str(account.id),
        email=account.email,
        email_confirmed=account.email_confirmed,
    )


class AccountBackend:
    """Accounts, token issuance and profile rows stored through SQLModel."""

    def __init__(self, engine: Engine, session_ttl: timedelta = timedelta(minutes=60)):
        self.engine = engine
        self.session_ttl = session_ttl

    def _session(self) -> Session:
        return Session(self.engine, expire_on_commit=False)

    # Accounts

    def create_account(
        self, email: str, password: str, full_name: str | None = None
    ) -> tuple[AuthUser, str]:
        """Create an unconfirmed account and its student profile.

        Returns the new user and the confirmation token to send by email.
        """
        email = _normalize_email(email)
        with self._session() as session:
            if session.exec(select(Account).where(Account.email == email)).first():
                raise AuthError("user_already_exists", "An account with this email already exists.")

            token = secrets.token_urlsafe(32)
            account = Account(
                email=email,
                password_hash=generate_password_hash(password),
                confirmation_token=token,
            )
            session.add(account)
            session.flush()
            session.add(
                Profile(
                    user_id=str(account.id),
                    full_name=full_name or email.split("@")[0],
                    role=Role.STUDENT.value,
                )
            )
            session.commit()
            logger.info(f"Created account {account.id} for {email}")
            return _to_user(account), token

    def create_admin(self, email: str, password: str, full_name: str) -> AuthUser:
        """Create a confirmed administrator account (used by scripts/create_admin.py)."""
        email = _normalize_email(email)
        with self._session() as session:
            if session.exec(select(Account).where(Account.email == email)).first():
                raise AuthError("user_already_exists", "An account with this email already exists.")
            account = Account(
                email=email,
                password_hash=generate_password_hash(password),
                email_confirmed=True,
            )
            session.add(account)
            session.flush()
            session.add(Profile(user_id=str(account.id), full_name=full_name, role=Role.ADMIN.value))
            session.commit()
            logger.info(f"Created admin account {account.id} for {email}")
            return _to_user(account)

    def confirm_email(self, token: str) -> AuthUser:
        with self._session() as session:
            account = session.exec(
                select(Account).where(Account.confirmation_token == token)
            ).first()
            if account is None:
                raise AuthError("invalid_token", "This confirmation link is invalid or has already been used.")
            account.email_confirmed = True
            account.confirmation_token = None
            session.add(account)
            session.commit()
            logger.info(f"Confirmed email for account {account.id}")
            return _to_user(account)

    def authenticate(self, email: str, password: str) -> AuthUser:
        """Check a password sign-in; returns the user without issuing tokens."""
        email = _normalize_email(email)
        with self._session() as session:
            account = session.exec(select(Account).where(Account.email == email)).first()
            if (
                account is None
                or account.password_hash is None
                or not check_password_hash(account.password_hash, password)
            ):
                raise AuthError("invalid_credentials", "Invalid login credentials.")
            if not account.email_confirmed:
                raise AuthError("email_not_confirmed", "Please confirm your email address before signing in.")
            return _to_user(account)

    def upsert_oauth_account(
        self, email: str, full_name: str | None = None, avatar_url: str | None = None
    ) -> AuthUser:
        """Find or create the account for an identity verified by an OAuth provider."""
        email = _normalize_email(email)
        with self._session() as session:
            account = session.exec(select(Account).where(Account.email == email)).first()
            if account is None:
                account = Account(email=email, email_confirmed=True)
                session.add(account)
                session.flush()
                session.add(
                    Profile(
                        user_id=str(account.id),
                        full_name=full_name or email.split("@")[0],
                        avatar_url=avatar_url,
                        role=Role.STUDENT.value,
                    )
                )
                logger.info(f"Created account {account.id} for OAuth identity {email}")
            elif not account.email_confirmed:
                # The provider has verified the address
                account.email_confirmed = True
                account.confirmation_token = None
                session.add(account)
            session.commit()
            return _to_user(account)

    # Tokens

    def issue_session(self, user: AuthUser) -> AuthSession:
        now = datetime.now(UTC)
        token = AuthToken(
            access_token=secrets.token_urlsafe(32),
            refresh_token=secrets.token_urlsafe(32),
            account_id=UUID(user.id),
            issued_at=now,
            expires_at=now + self.session_ttl,
        )
        with self._session() as session:
            account = session.get(Account, UUID(user.id))
            if account is not None:
                account.last_sign_in = now
                session.add(account)
            session.add(token)
            session.commit()
        return AuthSession(
            access_token=token.access_token,
            refresh_token=token.refresh_token,
            expires_at=token.expires_at,
            user=user,
        )

    def _live_token(self, session: Session, access_token: str) -> AuthToken | None:
        """The unrevoked token ``access_token`` has been rotated into, if any.

        A browser may still hold an access token that the refresh job has
        since rotated; following ``replaced_by`` finds the pair now in use.
        Sign-out leaves ``replaced_by`` unset, which ends the chain.
        """
        token = session.get(AuthToken, access_token)
        for _ in range(MAX_ROTATIONS_FOLLOWED):
            if token is None or not token.revoked:
                return token
            if token.replaced_by is None:
                return None
            token = session.get(AuthToken, token.replaced_by)
        return None

    def lookup_session(self, access_token: str) -> AuthSession | None:
        """The session for a live access token, or None if unknown, revoked or expired.

        A rotated token resolves to the pair that replaced it.
        """
        with self._session() as session:
            token = self._live_token(session, access_token)
            if token is None or token.expires_at <= datetime.now(UTC):
                return None
            account = session.get(Account, token.account_id)
            if account is None:
                return None
            return AuthSession(
                access_token=token.access_token,
                refresh_token=token.refresh_token,
                expires_at=token.expires_at,
                user=_to_user(account),
            )

    def refresh(self, refresh_token: str) -> AuthSession:
        """Rotate a token pair; the old pair is revoked and linked to the new one."""
        with self._session() as session:
            token = session.exec(
                select(AuthToken).where(AuthToken.refresh_token == refresh_token)
            ).first()
            if token is None or token.revoked:
                raise AuthError("session_expired", "Your session has expired. Please sign in again.")
            account = session.get(Account, token.account_id)
            if account is None:
                raise AuthError("session_expired", "Your session has expired. Please sign in again.")
            token.revoked = True
            session.add(token)
            session.commit()
            user = _to_user(account)
        new_session = self.issue_session(user)
        with self._session() as session:
            token = session.exec(
                select(AuthToken).where(AuthToken.refresh_token == refresh_token)
            ).one()
            token.replaced_by = new_session.access_token
            session.add(token)
            session.commit()
        return new_session

    def revoke(self, access_token: str) -> None:
        """Revoke ``access_token``, or the pair it has been rotated into."""
        with self._session() as session:
            token = self._live_token(session, access_token)
            if token is None:
                return
            token.revoked = True
            session.add(token)
            session.commit()

    # Profiles

    def get_profile(self, user_id: str) -> Profile | None:
        with self._session() as session:
            return session.get(Profile, user_id)
