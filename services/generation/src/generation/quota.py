"""In-memory generation quota per user, limited by plan."""
from pydantic import BaseModel

from shared.errors import QuotaExceededError
from shared.schemas import Plan, SessionContext

PLAN_LIMITS: dict[Plan, int] = {
    Plan.FREE: 10,
    Plan.STARTER: 500,
    Plan.PRO: 2000,
}


class QuotaStatus(BaseModel):
    user_id: str
    plan: Plan
    used: int
    limit: int | None = None  # None: unlimited
    remaining: int | None = None


class QuotaLedger:
    """Counts generations per user. Admins are not limited."""

    def __init__(self, limits: dict[Plan, int] | None = None) -> None:
        self._limits = dict(PLAN_LIMITS if limits is None else limits)
        self._used: dict[str, int] = {}

    def limit_for(self, session: SessionContext) -> int | None:
        if session.is_admin:
            return None
        return self._limits.get(session.plan, 0)

    def used(self, user_id: str) -> int:
        return self._used.get(user_id, 0)

    def reserve(self, session: SessionContext) -> None:
        """Take one generation from the allotment or raise QuotaExceededError."""
        used = self.used(session.user_id)
        limit = self.limit_for(session)
        if limit is not None and used >= limit:
            raise QuotaExceededError(
                f"{session.plan.value} plan allows {limit} generations; {used} already used"
            )
        self._used[session.user_id] = used + 1

    def refund(self, session: SessionContext) -> None:
        """Give back a reservation whose request failed."""
        used = self.used(session.user_id)
        if used > 0:
            self._used[session.user_id] = used - 1

    def status(self, session: SessionContext) -> QuotaStatus:
        used = self.used(session.user_id)
        limit = self.limit_for(session)
        return QuotaStatus(
            user_id=session.user_id,
            plan=session.plan,
            used=used,
            limit=limit,
            remaining=None if limit is None else max(0, limit - used),
        )
