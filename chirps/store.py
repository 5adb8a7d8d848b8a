"""
chirps/store.py -- SQLAlchemy Core persistence layer for chirps.

Pattern: Repository + Data Mapper (same as auth/store.py).
ChirpStore is the repository; _row_to_chirp is the mapper.

Ownership is NOT enforced here. The delete route loads the chirp, compares
its user_id with the authenticated user, and only then calls delete_chirp().

Layer rule: no imports from api/, web/, or auth/.
"""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy.engine import Engine

from chirps.models import Chirp
from core.database import chirps as _chirps
from core.database import now_iso


class ChirpStore:
    """Repository for Chirp entities.

    Usage:
        store = ChirpStore(engine)
        chirp = store.create_chirp(user.id, "hello world")
        store.list_chirps(author_id=user.id, descending=True)
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create_chirp(self, user_id: UUID, body: str) -> Chirp:
        """Insert a chirp for user_id. body must already be validated."""
        now = now_iso()
        chirp = Chirp(id=uuid4(), body=body, user_id=user_id, created_at=now, updated_at=now)
        with self.engine.connect() as conn:
            conn.execute(
                _chirps.insert().values(
                    id=str(chirp.id),
                    body=chirp.body,
                    user_id=str(chirp.user_id),
                    created_at=chirp.created_at,
                    updated_at=chirp.updated_at,
                )
            )
            conn.commit()
        return chirp

    def get_chirp(self, chirp_id: UUID) -> Chirp | None:
        """Look up a chirp by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_chirps.select().where(_chirps.c.id == str(chirp_id))).fetchone()
        return _row_to_chirp(row) if row is not None else None

    def list_chirps(self, author_id: UUID | None = None, descending: bool = False) -> list[Chirp]:
        """Return chirps ordered by created_at, oldest first unless descending.

        author_id narrows the result to one user's chirps.
        """
        query = _chirps.select()
        if author_id is not None:
            query = query.where(_chirps.c.user_id == str(author_id))
        order = _chirps.c.created_at.desc() if descending else _chirps.c.created_at.asc()
        with self.engine.connect() as conn:
            rows = conn.execute(query.order_by(order)).fetchall()
        return [_row_to_chirp(r) for r in rows]

    def delete_chirp(self, chirp_id: UUID) -> bool:
        """Delete a chirp. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_chirps.delete().where(_chirps.c.id == str(chirp_id)))
            conn.commit()
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_chirp(row) -> Chirp:
    return Chirp(
        id=UUID(row.id),
        body=row.body,
        user_id=UUID(row.user_id),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
