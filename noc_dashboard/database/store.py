"""Thin async facade over the relational store.

``run`` / ``get`` / ``all`` execute one statement each in its own
auto-committed transaction. ``transaction()`` opens an explicit
BEGIN ... COMMIT scope on a single connection and rolls it back before any
error leaves the block.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Union

from sqlalchemy import text
from sqlalchemy.engine import CursorResult, RowMapping
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine
from sqlalchemy.sql import Executable

from noc_dashboard.core.exceptions import LocalWriteFailure

logger = logging.getLogger(__name__)

Statement = Union[str, Executable]
Params = Union[Dict[str, Any], Sequence[Dict[str, Any]], None]


def _as_executable(statement: Statement) -> Executable:
    if isinstance(statement, str):
        return text(statement)
    return statement


class Transaction:
    """Statement primitives bound to the connection of an open transaction."""

    def __init__(self, conn: AsyncConnection):
        self.conn = conn

    async def run(self, statement: Statement, params: Params = None) -> CursorResult:
        if params is None:
            return await self.conn.execute(_as_executable(statement))
        return await self.conn.execute(_as_executable(statement), params)

    async def get(self, statement: Statement, params: Params = None) -> Optional[RowMapping]:
        result = await self.run(statement, params)
        return result.mappings().first()

    async def all(self, statement: Statement, params: Params = None) -> List[RowMapping]:
        result = await self.run(statement, params)
        return list(result.mappings().all())


class Store:
    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def run(self, statement: Statement, params: Params = None) -> CursorResult:
        async with self.engine.begin() as conn:
            return await Transaction(conn).run(statement, params)

    async def get(self, statement: Statement, params: Params = None) -> Optional[RowMapping]:
        async with self.engine.connect() as conn:
            return await Transaction(conn).get(statement, params)

    async def all(self, statement: Statement, params: Params = None) -> List[RowMapping]:
        async with self.engine.connect() as conn:
            return await Transaction(conn).all(statement, params)

    @asynccontextmanager
    async def transaction(self, label: Optional[str] = None) -> AsyncIterator[Transaction]:
        """Explicit transaction scope.

        Database errors raised inside the block surface as
        ``LocalWriteFailure`` tagged with ``label``; any other exception is
        re-raised unchanged. Either way the transaction is rolled back first.
        """
        async with self.engine.connect() as conn:
            trans = await conn.begin()
            try:
                yield Transaction(conn)
                await trans.commit()
            except SQLAlchemyError as exc:
                if trans.is_active:
                    await trans.rollback()
                logger.warning("Rolled back %s transaction: %s", label or "store", exc)
                raise LocalWriteFailure(_describe(exc), resource=label) from exc
            except Exception:
                if trans.is_active:
                    await trans.rollback()
                raise


def _describe(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    if orig is not None:
        return f"{type(orig).__name__}: {orig}"
    return str(exc)
