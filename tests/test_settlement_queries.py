from __future__ import annotations

from uuid import uuid4

from sqlalchemy.dialects import postgresql

from settlement.db.repo.commissions_repo import CommissionsRepo
from settlement.db.repo.tickets_repo import TicketsRepo


class _Result:
    def all(self) -> list[object]:
        return []

    def scalar_one_or_none(self) -> None:
        return None


class _CapturingSession:
    def __init__(self) -> None:
        self.statements: list[object] = []

    async def execute(self, stmt):
        self.statements.append(stmt)
        return _Result()


def _compiled(stmt) -> tuple[str, dict[str, object]]:
    compiled = stmt.compile(dialect=postgresql.dialect())
    return str(compiled), dict(compiled.params)


async def test_pending_commissions_for_payout_come_from_confirmed_tickets_only() -> None:
    session = _CapturingSession()

    rows = await CommissionsRepo.list_pending_for_event(session, event_id=uuid4())

    assert rows == []
    sql, params = _compiled(session.statements[0])
    assert "JOIN tickets ON tickets.id = commissions.ticket_id" in sql
    assert "tickets.status = " in sql
    assert "commissions.status = " in sql
    assert {value for value in params.values() if isinstance(value, str)} == {"confirmed", "pending"}


async def test_failed_and_cancelled_tickets_do_not_block_a_new_purchase() -> None:
    session = _CapturingSession()

    ticket = await TicketsRepo.get_blocking_for_event_user(session, event_id=uuid4(), user_id=uuid4())

    assert ticket is None
    sql, params = _compiled(session.statements[0])
    assert "tickets.status NOT IN" in sql
    excluded = [value for value in params.values() if isinstance(value, (list, tuple))]
    assert [set(value) for value in excluded] == [{"failed", "cancelled"}]
