"""Structured outcomes for operations that report partial failure."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from rental_kernel.exceptions import ValidationFailedError


@dataclass(frozen=True)
class TransitionResult:
    """
    Outcome of a single workflow transition.

    Used where a batch caller needs to know *why* a transition did not
    happen without exception-based control flow.
    """

    success: bool
    message: str = ""
    errors: tuple[str, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str = "Operation completed successfully", **metadata: Any) -> TransitionResult:
        return cls(success=True, message=message, metadata=metadata)

    @classmethod
    def fail(cls, *errors: str) -> TransitionResult:
        return cls(success=False, errors=tuple(errors))

    def raise_for_errors(self) -> None:
        """Raise ValidationFailedError when the transition failed."""
        if not self.success:
            raise ValidationFailedError(
                self.errors[0] if self.errors else "Transition failed", self.errors,
            )
