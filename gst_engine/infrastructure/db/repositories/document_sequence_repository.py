# gst_engine/infrastructure/db/repositories/document_sequence_repository.py
"""
Database-backed document number sequences.

Each call increments ``last_value`` atomically in the database and returns
the new value, so two concurrent transactions can never receive the same
number. The first number of a scope is created by INSERT; a concurrent
insert for the same scope loses on the unique constraint and retries the
UPDATE path.
"""

from __future__ import annotations

import logging

from sqlalchemy import and_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gst_engine.config.settings import settings
from gst_engine.domain.errors import TaxComputationError
from gst_engine.domain.services.document_numbering import SequenceScope
from gst_engine.infrastructure.db.models import DocumentSequence

logger = logging.getLogger("repo.document_sequence")


class DocumentSequenceRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @staticmethod
    def _scope_filter(scope: SequenceScope):
        return and_(
            DocumentSequence.seller_gstin == scope.seller_gstin,
            DocumentSequence.document_type == scope.document_type.value,
            DocumentSequence.period == scope.period,
        )

    async def _increment(self, scope: SequenceScope) -> int | None:
        stmt = (
            update(DocumentSequence)
            .where(self._scope_filter(scope))
            .values(last_value=DocumentSequence.last_value + 1)
            .returning(DocumentSequence.last_value)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _create_first(self, scope: SequenceScope) -> bool:
        """Insert the scope row at 1. False if another transaction got there first."""
        try:
            async with self.db.begin_nested():
                self.db.add(
                    DocumentSequence(
                        seller_gstin=scope.seller_gstin,
                        document_type=scope.document_type.value,
                        period=scope.period,
                        last_value=1,
                    )
                )
                await self.db.flush()
        except IntegrityError:
            return False
        return True

    async def next_value(self, scope: SequenceScope) -> int:
        """Allocate the next number for ``scope``. Must run inside the caller's transaction."""
        attempts = max(1, settings.NUMBER_ALLOCATION_RETRIES)
        for attempt in range(1, attempts + 1):
            value = await self._increment(scope)
            if value is not None:
                return value
            if await self._create_first(scope):
                return 1
            logger.warning(
                "Sequence row for %s/%s/%s created concurrently; retrying (attempt %d/%d)",
                scope.seller_gstin, scope.document_type.value, scope.period, attempt, attempts,
            )
        raise TaxComputationError(
            f"Could not allocate {scope.document_type.value} number for "
            f"{scope.seller_gstin} {scope.period} after {attempts} attempts"
        )
