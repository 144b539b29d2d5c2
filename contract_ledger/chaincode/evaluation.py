"""
SLA Evaluation Engine: scores a mower SLA from its parameters.

The engine is a pure function of (service level, target, max, min). Inputs
are quantized to the wire precision before scoring, so a value and its
decimal-string round trip always get the same score. The arithmetic itself is
a business policy injected into the evaluator; BandScoringPolicy is the
default and can be replaced without touching the state machine.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Mapping, Protocol

from ..core.config import Settings
from ..schemas import ServiceLevel
from .codec import DEFAULT_PLACES, quantize
from .errors import InvalidSLAError, ValidationError


class ScoringPolicy(Protocol):
    """Business rule turning validated SLA parameters into a score."""

    def score(
        self,
        service_level: ServiceLevel,
        target: Decimal,
        max_length: Decimal,
        min_length: Decimal,
    ) -> int: ...


@dataclass(frozen=True)
class BandScoringPolicy:
    """
    Score = level weight * base points + precision bonus.

    The precision bonus rewards a narrow tolerance band:
    round_half_even(precision_points / (1 + (max - min))).
    """

    level_weights: Mapping[str, int] = field(
        default_factory=lambda: {"Bronze": 1, "Silver": 2, "Gold": 3}
    )
    base_points: int = 100
    precision_points: int = 100

    @classmethod
    def from_settings(cls, settings: Settings) -> "BandScoringPolicy":
        return cls(
            level_weights=settings.sla_level_weights,
            base_points=settings.sla_base_points,
            precision_points=settings.sla_precision_points,
        )

    def score(
        self,
        service_level: ServiceLevel,
        target: Decimal,
        max_length: Decimal,
        min_length: Decimal,
    ) -> int:
        weight = self.level_weights.get(ServiceLevel(service_level).value)
        if weight is None:
            raise ValidationError(f"no scoring weight for service level {service_level}")
        band = max_length - min_length
        bonus = (Decimal(self.precision_points) / (1 + band)).to_integral_value(
            rounding=ROUND_HALF_EVEN
        )
        return weight * self.base_points + int(bonus)


def parse_service_level(value: ServiceLevel | str) -> ServiceLevel:
    try:
        return ServiceLevel(value)
    except ValueError:
        allowed = ", ".join(level.value for level in ServiceLevel)
        raise ValidationError(f"unknown service level {value!r} (expected one of {allowed})")


def check_interval(target: Decimal, max_length: Decimal, min_length: Decimal) -> None:
    """Enforce min <= target <= max on non-negative lengths."""
    if min(target, max_length, min_length) < 0:
        raise ValidationError("grass lengths must not be negative")
    if min_length > target or target > max_length:
        raise InvalidSLAError(
            f"grass length interval violated: expected min {min_length} <= "
            f"target {target} <= max {max_length}"
        )


class SLAEvaluator:
    """Validates SLA parameters and scores them with the injected policy."""

    def __init__(self, policy: ScoringPolicy | None = None, places: int = DEFAULT_PLACES):
        self.policy = policy or BandScoringPolicy()
        self.places = places

    @classmethod
    def from_settings(cls, settings: Settings) -> "SLAEvaluator":
        return cls(BandScoringPolicy.from_settings(settings), settings.decimal_places)

    def evaluate(
        self,
        service_level: ServiceLevel | str,
        target: float,
        max_length: float,
        min_length: float,
    ) -> int:
        level = parse_service_level(service_level)
        target_q = quantize(target, self.places)
        max_q = quantize(max_length, self.places)
        min_q = quantize(min_length, self.places)
        check_interval(target_q, max_q, min_q)
        return self.policy.score(level, target_q, max_q, min_q)
