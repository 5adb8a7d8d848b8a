"""
chirps/models.py -- Domain dataclass for chirps.

Pure data container with zero logic. Body validation lives in
chirps/validation.py, persistence in chirps/store.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass
class Chirp:
    """A short text message posted by a user.

    body is stored already cleaned by validate_chirp(); the raw text is not
    kept. user_id is the author and the only account allowed to delete it.
    """

    id: UUID
    body: str
    user_id: UUID
    created_at: str  # ISO 8601, set by store on insert
    updated_at: str
