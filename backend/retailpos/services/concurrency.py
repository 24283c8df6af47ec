# Overview: Transaction and row-locking helpers shared by the write paths.

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.orm import scoped_session

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def begin_write_transaction(session=None) -> None:
    """
    Start the session's transaction as a writer.

    SQLite only takes its write lock at the first write statement, which lets
    two checkouts read the same product row before either writes. BEGIN
    IMMEDIATE takes the lock up front so concurrent writers serialise.
    Other engines rely on lock_for_update / guarded UPDATEs instead.
    """
    session = session or db.session
    if isinstance(session, scoped_session):
        # The registry proxy does not expose in_transaction(); use the real Session
        session = session()
    if session.in_transaction():
        return
    if session.get_bind().dialect.name == "sqlite":
        session.execute(text("BEGIN IMMEDIATE"))
