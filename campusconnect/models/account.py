"""Identity provider tables: accounts, issued tokens and profiles.

This module defines the records behind the identity provider. ``Account``
holds credentials, ``AuthToken`` holds the access/refresh token pairs
issued on sign-in, and ``Profile`` holds the supplementary identity data
(name, avatar, role) that decides whether a user is an administrator.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from campusconnect.core.database import UTCDateTime


class Role(str, Enum):
    STUDENT = "student"
    ADMIN = "admin"


class Account(SQLModel, table=True):
    """A user known to the identity provider.

    Attributes:
        id: Unique identifier (UUID), exposed as the user id.
        email: Sign-in email, stored lower-cased.
        password_hash: werkzeug password hash; ``None`` for accounts that
            only ever signed in through OAuth.
        email_confirmed: Password sign-in is refused until confirmed.
        confirmation_token: One-time token sent in the confirmation link.
        created_at: When the account was created.
        last_sign_in: When a session was last issued for this account.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str | None = None
    email_confirmed: bool = Field(default=False)
    confirmation_token: str | None = Field(default=None, index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), sa_type=UTCDateTime
    )
    last_sign_in: datetime | None = Field(default=None, sa_type=UTCDateTime)


class AuthToken(SQLModel, table=True):
    """An issued access/refresh token pair.

    The access token authenticates requests until ``expires_at``; the
    refresh token can be exchanged once for a new pair, after which this
    row is revoked.

    Attributes:
        access_token: Opaque bearer token (primary key).
        refresh_token: Opaque token used to rotate the pair.
        account_id: Foreign key to the owning Account.
        issued_at: When the pair was issued.
        expires_at: When the access token stops being accepted.
        revoked: Set on sign-out or rotation.
        replaced_by: Access token of the pair issued when this one was
            rotated. Unset for pairs revoked by sign-out.
    """
    __tablename__ = "auth_token"

    access_token: str = Field(primary_key=True)
    refresh_token: str = Field(index=True, unique=True)
    account_id: UUID = Field(foreign_key="account.id", index=True)
    issued_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), sa_type=UTCDateTime
    )
    expires_at: datetime = Field(sa_type=UTCDateTime)
    revoked: bool = Field(default=False)
    replaced_by: str | None = Field(default=None)


class Profile(SQLModel, table=True):
    """Supplementary identity data keyed by user id.

    Attributes:
        user_id: The Account id as a string.
        full_name: Display name.
        avatar_url: Optional avatar image reference.
        role: "student" or "admin". Anything else is treated as student.
    """
    user_id: str = Field(primary_key=True)
    full_name: str | None = None
    avatar_url: str | None = None
    role: str = Field(default=Role.STUDENT.value)

    @property
    def resolved_role(self) -> Role:
        try:
            return Role(self.role)
        except ValueError:
            return Role.STUDENT
