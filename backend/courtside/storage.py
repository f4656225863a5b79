"""Persistence boundary for live matches.

The scoring core only ever sees :class:`~courtside.scoring.models.Match`
values; everything about ids, admin tokens, versions and timestamps lives
here. Routers receive a :class:`MatchStore` through dependency injection so
no module holds process-wide match state.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Protocol

from fastapi import Depends
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_session
from .exceptions import MatchConflict, MatchNotFound
from .models import MatchRecord
from .scoring.models import Match, MatchStatus

logger = logging.getLogger(__name__)


@dataclass
class StoredMatch:
    id: str
    match: Match
    version: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: MatchRecord) -> "StoredMatch":
        return cls(
            id=record.id,
            match=Match.model_validate(record.state),
            version=record.version,
            created_at=_as_utc(record.created_at),
            updated_at=_as_utc(record.updated_at),
        )


class MatchStore(Protocol):
    async def create(self, match: Match, *, admin_token: str) -> StoredMatch: ...

    async def load(self, match_id: str) -> StoredMatch: ...

    async def save(
        self, match_id: str, match: Match, *, expected_version: int
    ) -> StoredMatch: ...

    async def delete(self, match_id: str) -> None: ...

    async def list(
        self,
        *,
        status: Optional[MatchStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[StoredMatch]: ...

    async def verify_token(self, match_id: str, token: str) -> bool: ...


def generate_admin_token() -> str:
    return secrets.token_urlsafe(24)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def _utcnow() -> datetime:
    # Stored naive; every read goes back through _as_utc.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SqlMatchStore:
    """:class:`MatchStore` backed by the ``match`` table."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _get_record(self, match_id: str) -> Optional[MatchRecord]:
        return (
            await self.session.execute(
                select(MatchRecord).where(
                    MatchRecord.id == match_id, MatchRecord.deleted_at.is_(None)
                )
            )
        ).scalar_one_or_none()

    async def create(self, match: Match, *, admin_token: str) -> StoredMatch:
        now = _utcnow()
        record = MatchRecord(
            id=uuid.uuid4().hex,
            state=match.to_json(),
            status=match.status,
            player1_name=match.config.player1_name,
            player2_name=match.config.player2_name,
            admin_token_hash=hash_token(admin_token),
            version=1,
            created_at=now,
            updated_at=now,
        )
        self.session.add(record)
        await self.session.commit()
        logger.info(
            "Created match %s (%s vs %s)",
            record.id,
            record.player1_name,
            record.player2_name,
        )
        return StoredMatch.from_record(record)

    async def load(self, match_id: str) -> StoredMatch:
        record = await self._get_record(match_id)
        if record is None:
            raise MatchNotFound(match_id)
        return StoredMatch.from_record(record)

    async def save(
        self, match_id: str, match: Match, *, expected_version: int
    ) -> StoredMatch:
        now = _utcnow()
        result = await self.session.execute(
            update(MatchRecord)
            .where(
                MatchRecord.id == match_id,
                MatchRecord.deleted_at.is_(None),
                MatchRecord.version == expected_version,
            )
            .values(
                state=match.to_json(),
                status=match.status,
                version=expected_version + 1,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.session.rollback()
            record = await self._get_record(match_id)
            if record is None:
                raise MatchNotFound(match_id)
            logger.warning(
                "Version conflict on match %s: expected %d, stored %d",
                match_id,
                expected_version,
                record.version,
            )
            raise MatchConflict(match_id, expected_version, record.version)

        await self.session.commit()
        self.session.expire_all()
        return await self.load(match_id)

    async def delete(self, match_id: str) -> None:
        record = await self._get_record(match_id)
        if record is None:
            raise MatchNotFound(match_id)
        record.deleted_at = _utcnow()
        await self.session.commit()
        logger.info("Deleted match %s", match_id)

    async def list(
        self,
        *,
        status: Optional[MatchStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[StoredMatch]:
        stmt = select(MatchRecord).where(MatchRecord.deleted_at.is_(None))
        if status is not None:
            stmt = stmt.where(MatchRecord.status == status)
        stmt = (
            stmt.order_by(MatchRecord.updated_at.desc(), MatchRecord.id)
            .limit(limit)
            .offset(offset)
        )
        records = (await self.session.execute(stmt)).scalars().all()
        return [StoredMatch.from_record(r) for r in records]

    async def verify_token(self, match_id: str, token: str) -> bool:
        record = await self._get_record(match_id)
        if record is None or not token:
            return False
        return secrets.compare_digest(record.admin_token_hash, hash_token(token))


async def get_match_store(
    session: AsyncSession = Depends(get_session),
) -> MatchStore:
    """FastAPI dependency; override it in tests to inject another store."""
    return SqlMatchStore(session)
