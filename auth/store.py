"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper (same as chirps/store.py).
UserStore is the repository; _row_to_user / _row_to_refresh_token are the
mappers. Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Refresh tokens are stored as HMAC hashes only (see auth/tokens.py).

The engine is shared with ChirpStore (built by core.database.create_db_engine)
so deleting a user cascades to their chirps and refresh tokens.

Layer rule: no imports from api/, web/, or chirps/.
"""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.engine import Engine

from auth.models import RefreshToken, User
from core.database import now_iso
from core.database import refresh_tokens as _refresh_tokens
from core.database import users as _users


class UserStore:
    """Repository for User and RefreshToken entities.

    Usage:
        store = UserStore(create_db_engine("sqlite:///chirpy.db"))
        user = store.create_user("alice@example.com", hash_password("secret"))
        store.get_by_email("alice@example.com")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def create_user(self, email: str, hashed_password: str) -> User:
        """Insert a new user and return it.

        Raises sqlalchemy.exc.IntegrityError if the email is already taken.
        POST /api/users turns that into a 409.
        """
        now = now_iso()
        user = User(
            id=uuid4(),
            email=email,
            hashed_password=hashed_password,
            created_at=now,
            updated_at=now,
        )
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=str(user.id),
                    email=user.email,
                    hashed_password=user.hashed_password,
                    created_at=user.created_at,
                    updated_at=user.updated_at,
                    is_chirpy_red=0,
                )
            )
            conn.commit()
        return user

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: UUID) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == str(user_id))).fetchone()
        return _row_to_user(row) if row is not None else None

    def update_credentials(self, user_id: UUID, email: str, hashed_password: str) -> User | None:
        """Replace a user's email and password hash.

        Returns the updated User, or None if user_id does not exist.
        Raises IntegrityError if the new email belongs to another account.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == str(user_id))
                .values(email=email, hashed_password=hashed_password, updated_at=now_iso())
            )
            conn.commit()
        if result.rowcount == 0:
            return None
        return self.get_by_id(user_id)

    def upgrade_to_chirpy_red(self, user_id: UUID) -> bool:
        """Mark a user as a Chirpy Red subscriber.

        Returns True if the user exists, False otherwise. Upgrading an
        already-upgraded user is a no-op that still returns True.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == str(user_id)).values(is_chirpy_red=1, updated_at=now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def delete_all_users(self) -> int:
        """Delete every user. Chirps and refresh tokens go with them (CASCADE).

        Only reachable from POST /admin/reset on the dev platform. Returns the
        number of users removed.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete())
            conn.commit()
        return result.rowcount

    # ------------------------------------------------------------------
    # Refresh token queries
    # ------------------------------------------------------------------

    def create_refresh_token(self, user_id: UUID, token_hash: str, expires_at: str) -> RefreshToken:
        """Persist a refresh token hash for user_id and return the record."""
        now = now_iso()
        token = RefreshToken(
            token_hash=token_hash,
            user_id=user_id,
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
        )
        with self.engine.connect() as conn:
            conn.execute(
                _refresh_tokens.insert().values(
                    token_hash=token.token_hash,
                    user_id=str(token.user_id),
                    expires_at=token.expires_at,
                    created_at=token.created_at,
                    updated_at=token.updated_at,
                )
            )
            conn.commit()
        return token

    def get_refresh_token(self, token_hash: str) -> RefreshToken | None:
        """Return the refresh token record regardless of state. None if unknown."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _refresh_tokens.select().where(_refresh_tokens.c.token_hash == token_hash)
            ).fetchone()
        return _row_to_refresh_token(row) if row is not None else None

    def get_user_from_refresh_token(self, token_hash: str) -> User | None:
        """Return the owner of a usable refresh token.

        Usable means: the hash exists, revoked_at is NULL, and expires_at is
        still in the future. Anything else returns None.
        """
        query = (
            select(_users)
            .join(_refresh_tokens, _refresh_tokens.c.user_id == _users.c.id)
            .where(
                (_refresh_tokens.c.token_hash == token_hash)
                & (_refresh_tokens.c.revoked_at.is_(None))
                & (_refresh_tokens.c.expires_at > now_iso())
            )
        )
        with self.engine.connect() as conn:
            row = conn.execute(query).fetchone()
        return _row_to_user(row) if row is not None else None

    def revoke_refresh_token(self, token_hash: str) -> bool:
        """Stamp revoked_at on a token that is not already revoked.

        Returns True if a token was revoked by this call. Revoking twice keeps
        the first revoked_at and returns False the second time.
        """
        now = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _refresh_tokens.update()
                .where((_refresh_tokens.c.token_hash == token_hash) & (_refresh_tokens.c.revoked_at.is_(None)))
                .values(revoked_at=now, updated_at=now)
            )
            conn.commit()
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=UUID(row.id),
        email=row.email,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
        updated_at=row.updated_at,
        is_chirpy_red=bool(row.is_chirpy_red),
    )


def _row_to_refresh_token(row) -> RefreshToken:
    return RefreshToken(
        token_hash=row.token_hash,
        user_id=UUID(row.user_id),
        expires_at=row.expires_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
        revoked_at=row.revoked_at,
    )
