"""Point deductions produced by scorecard checks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

MAX_SCORE = 100


@dataclass(frozen=True)
class Deduction:
    """A weighted penalty with a fully rendered justification.

    A disqualification forces the owning check's score to ``0`` no matter which
    other deductions are present; its ``weight`` is recorded as ``MAX_SCORE``.
    """

    weight: int
    message: str
    is_disqualification: bool = False

    @classmethod
    def create(
        cls,
        weight: int,
        template: str,
        *args: Any,
        audit_logger: Optional[logging.Logger] = None,
    ) -> "Deduction":
        """Render ``template % args`` into a deduction and log it.

        Raises:
            ValueError: If ``weight`` is negative.
        """
        if weight < 0:
            raise ValueError("Deduction weight must be greater than or equal to 0.")

        message = template % args if args else template
        (audit_logger or logger).info("Deduction of %d points: %s", weight, message)
        return cls(weight=weight, message=message)

    @classmethod
    def create_disqualification(
        cls,
        template: str,
        *args: Any,
        audit_logger: Optional[logging.Logger] = None,
    ) -> "Deduction":
        """Render ``template % args`` into a disqualification and log it."""
        message = template % args if args else template
        (audit_logger or logger).warning("Disqualification: %s", message)
        return cls(weight=MAX_SCORE, message=message, is_disqualification=True)
