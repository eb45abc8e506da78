"""Atomic write blocks for multi-step service operations."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from campus_admin.common.exceptions import ConflictError, StorageFailure

logger = logging.getLogger(__name__)


@asynccontextmanager
async def atomic(
    db: AsyncSession,
    operation: str,
    *,
    conflict: Optional[tuple[str, Any]] = None,
) -> AsyncIterator[AsyncSession]:
    """
    Run a sequence of writes as one unit.

    The block is flushed on exit. Any exception rolls the session back so no
    partial state survives; database errors are logged and re-raised as
    ``StorageFailure``. When *conflict* is given as ``(field, value)``, a
    unique-key violation is reported as ``ConflictError`` on that field.

    Usage::

        async with atomic(db, "payroll.create"):
            db.add(payroll)
            await mark_paid(...)
    """
    try:
        yield db
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        if conflict is not None:
            field, value = conflict
            raise ConflictError(field, value) from exc
        logger.exception("Integrity error during %s", operation)
        raise StorageFailure(operation) from exc
    except SQLAlchemyError as exc:
        logger.exception("Storage failure during %s", operation)
        await db.rollback()
        raise StorageFailure(operation) from exc
    except Exception:
        await db.rollback()
        raise
