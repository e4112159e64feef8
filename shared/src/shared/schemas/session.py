"""Session context threaded explicitly through every generation call."""
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Plan(str, Enum):
    FREE = "FREE"
    STARTER = "STARTER"
    PRO = "PRO"


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class SessionContext(BaseModel):
    """Who is asking: identity, plan and role of the caller."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    plan: Plan = Plan.FREE
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN
