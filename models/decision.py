# models/decision.py

from pydantic import BaseModel, ConfigDict

from models.enums import DecisionReason


class Decision(BaseModel):
    """Outcome of one policy evaluation. Immutable."""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: DecisionReason

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True, reason=DecisionReason.ok)

    @classmethod
    def deny(cls, reason: DecisionReason) -> "Decision":
        return cls(allowed=False, reason=reason)
