"""Score aggregation for checks, services and whole runs.

This module provides:
- Per-check scoring from a list of deductions (floor at ``0``, disqualification
  short-circuits to ``0``).
- Round-half-up averaging of per-check scores into a service score.
- The immutable ``ServiceScorecard`` and ``RunInfo`` structures handed to the
  renderer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from .deductions import MAX_SCORE, Deduction


def score_check(deductions: Iterable[Deduction]) -> int:
    """Compute a single check's score from its deductions.

    Weights are summed without a per-deduction cap; only the total is clamped.

    Args:
        deductions: Deductions produced by one check against one service.

    Returns:
        ``0`` when any deduction is a disqualification, otherwise
        ``max(0, 100 - sum(weights))``.
    """
    total = 0
    for deduction in deductions:
        if deduction.is_disqualification:
            return 0
        total += deduction.weight
    return max(0, MAX_SCORE - total)


def average_score(scores: Sequence[int]) -> int:
    """Average per-check scores, rounding half up.

    An empty sequence averages to ``MAX_SCORE`` since nothing was deducted.
    """
    if not scores:
        return MAX_SCORE
    mean = Decimal(sum(scores)) / Decimal(len(scores))
    return int(mean.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class ServiceScorecard:
    """Deductions per check for one service plus the derived average score."""

    deductions_by_check: Mapping[str, Tuple[Deduction, ...]]
    average: int

    @classmethod
    def from_deductions(cls, deductions_by_check: Mapping[str, Iterable[Deduction]]) -> "ServiceScorecard":
        frozen = MappingProxyType(
            {check_name: tuple(deductions) for check_name, deductions in deductions_by_check.items()}
        )
        average = average_score([score_check(deductions) for deductions in frozen.values()])
        return cls(deductions_by_check=frozen, average=average)

    @property
    def score_by_check(self) -> Dict[str, int]:
        return {name: score_check(deductions) for name, deductions in self.deductions_by_check.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deductions": {
                name: [
                    {
                        "weight": deduction.weight,
                        "message": deduction.message,
                        "disqualification": deduction.is_disqualification,
                    }
                    for deduction in deductions
                ]
                for name, deductions in self.deductions_by_check.items()
            },
            "average": self.average,
        }


@dataclass(frozen=True)
class CheckInfo:
    """Name and documentation page content of a check."""

    name: str
    description: str


@dataclass(frozen=True)
class RunInfo:
    """Everything one run produced, ready for rendering.

    ``checks`` preserves group order and check order within a group; groups are
    presentation-only and do not influence scoring. ``service_scores`` is sorted
    by service path.
    """

    checks: Mapping[str, Tuple[CheckInfo, ...]]
    service_scores: Mapping[str, ServiceScorecard] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        checks: Mapping[str, Iterable[CheckInfo]],
        service_scores: Mapping[str, ServiceScorecard],
    ) -> "RunInfo":
        return cls(
            checks=MappingProxyType({group: tuple(infos) for group, infos in checks.items()}),
            service_scores=MappingProxyType(dict(sorted(service_scores.items()))),
        )

    @property
    def check_names(self) -> List[str]:
        return [info.name for infos in self.checks.values() for info in infos]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "checks": {
                group: [{"name": info.name, "description": info.description} for info in infos]
                for group, infos in self.checks.items()
            },
            "service_scores": {
                service: scorecard.to_dict() for service, scorecard in self.service_scores.items()
            },
        }
