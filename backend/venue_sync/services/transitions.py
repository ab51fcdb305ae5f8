from __future__ import annotations

from typing import Any

from sqlalchemy import select, update

from venue_sync.core.errors import AlreadyTerminal, NotFound

PENDING = "pending"


def transition_pending(ctx, model, record_id: int, *, to_status: str, values: dict[str, Any] | None = None) -> None:
    """Move a request/invitation out of ``pending`` inside the current transaction.

    Compare-and-swap on the status column: of two racing transitions only the
    first to commit matches the row, the other gets AlreadyTerminal.
    Does not commit.
    """
    res = ctx.db.execute(
        update(model)
        .where(model.id == record_id, model.status == PENDING)
        .values(status=to_status, **(values or {}))
        .execution_options(synchronize_session=False)
    )
    if res.rowcount == 1:
        return

    current = ctx.db.execute(select(model.status).where(model.id == record_id)).scalar_one_or_none()
    if current is None:
        raise NotFound(f"{model.__name__} not found")
    raise AlreadyTerminal(status=current)


def commit_transition(ctx, model, record_id: int, *, to_status: str, values: dict[str, Any] | None = None) -> None:
    """transition_pending as its own unit of work: commit, or roll back and re-raise."""
    try:
        transition_pending(ctx, model, record_id, to_status=to_status, values=values)
        ctx.db.commit()
    except Exception:
        ctx.db.rollback()
        raise
