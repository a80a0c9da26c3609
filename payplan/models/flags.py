"""
Outcome Flags

DESIGN DECISION: The engine never raises for malformed domain input.
Every problem is reported as a PlannerFlag next to a normalized result,
and the caller decides how to present it.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FlagKind(str, Enum):
    """The closed taxonomy of non-fatal outcomes."""
    INVALID_AMOUNT = "invalid_amount"                # Coerced to 0
    UNSUPPORTED_FREQUENCY = "unsupported_frequency"  # Fell back to monthly
    NON_AMORTIZING = "non_amortizing"                # Payment never reduces principal
    INFINITE_PAYOFF = "infinite_payoff"              # Payment never covers interest
    ITERATION_CAP_REACHED = "iteration_cap_reached"  # Partial schedule returned


class PlannerFlag(BaseModel):
    """A single data-quality or outcome flag."""
    model_config = ConfigDict(frozen=True)

    kind: FlagKind = Field(
        ...,
        description="Which kind of problem this is"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the problem"
    )
    field: Optional[str] = Field(
        default=None,
        description="Field the flag is about, if any"
    )
    record: Optional[str] = Field(
        default=None,
        description="Name or id of the record the flag is about"
    )
    severity: str = Field(
        default="warning",
        pattern="^(error|warning|info)$",
        description="Flag severity"
    )

    @classmethod
    def invalid_amount(cls, field: str, value: object, record: Optional[str] = None) -> 'PlannerFlag':
        return cls(
            kind=FlagKind.INVALID_AMOUNT,
            field=field,
            record=record,
            message=f"Amount {value!r} is not a number; treated as 0",
        )

    @classmethod
    def unsupported_frequency(cls, field: str, value: object, record: Optional[str] = None) -> 'PlannerFlag':
        return cls(
            kind=FlagKind.UNSUPPORTED_FREQUENCY,
            field=field,
            record=record,
            message=f"Frequency {value!r} is not supported; using monthly",
        )


def has_flag(flags: list[PlannerFlag], kind: FlagKind) -> bool:
    """Check whether any flag of the given kind is present."""
    return any(flag.kind == kind for flag in flags)
