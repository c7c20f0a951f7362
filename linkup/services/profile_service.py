"""Lookup helpers for profile rows."""
from __future__ import annotations

from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models import Profile


def parse_profile_ids(raw: str | None) -> list[UUID]:
    """Parse a comma separated id list, ignoring blanks, malformed ids and duplicates."""

    ids: list[UUID] = []
    for chunk in (raw or "").split(","):
        text = chunk.strip()
        if not text:
            continue
        try:
            candidate = UUID(text)
        except ValueError:
            continue
        if candidate not in ids:
            ids.append(candidate)
    return ids


def list_profiles(db: Session, ids: Iterable[UUID]) -> list[Profile]:
    """Return the profiles for ``ids`` in one query; unknown ids are omitted."""

    wanted = list(ids)
    if not wanted:
        return []
    return list(db.scalars(select(Profile).where(Profile.id.in_(wanted))).all())


__all__ = ["list_profiles", "parse_profile_ids"]
