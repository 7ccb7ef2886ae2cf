"""Must-link / cannot-link constraints for semi-supervised cluster selection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from .errors import HdbscanConfigurationError


ConstraintType = Literal["must-link", "cannot-link"]

MUST_LINK: ConstraintType = "must-link"
CANNOT_LINK: ConstraintType = "cannot-link"

_KIND_ALIASES = {
    "must-link": MUST_LINK,
    "mustlink": MUST_LINK,
    "must_link": MUST_LINK,
    "cannot-link": CANNOT_LINK,
    "cannotlink": CANNOT_LINK,
    "cannot_link": CANNOT_LINK,
}


def normalise_constraint_type(value: str) -> ConstraintType:
    """Return the canonical constraint type for ``value`` (case-insensitive)."""

    kind = _KIND_ALIASES.get(str(value).strip().lower())
    if kind is None:
        raise ValueError(
            f"Unsupported constraint type '{value}'; expected '{MUST_LINK}' or '{CANNOT_LINK}'"
        )
    return kind


@dataclass(frozen=True, slots=True)
class Constraint:
    """A clustering constraint between two points."""

    point_a: int
    point_b: int
    kind: ConstraintType

    def __post_init__(self) -> None:
        object.__setattr__(self, "point_a", int(self.point_a))
        object.__setattr__(self, "point_b", int(self.point_b))
        object.__setattr__(self, "kind", normalise_constraint_type(self.kind))
        if self.point_a < 0 or self.point_b < 0:
            raise ValueError("Constraint point indices must be non-negative")

    @property
    def is_must_link(self) -> bool:
        return self.kind == MUST_LINK

    @property
    def is_cannot_link(self) -> bool:
        return self.kind == CANNOT_LINK

    def validate(self, num_points: int) -> None:
        """Ensure both endpoints address points in ``[0, num_points)``."""

        for point in (self.point_a, self.point_b):
            if point >= num_points:
                raise HdbscanConfigurationError(
                    f"Constraint references point {point} but the dataset has {num_points} points"
                )


def must_link(point_a: int, point_b: int) -> Constraint:
    return Constraint(point_a, point_b, MUST_LINK)


def cannot_link(point_a: int, point_b: int) -> Constraint:
    return Constraint(point_a, point_b, CANNOT_LINK)


__all__ = [
    "CANNOT_LINK",
    "MUST_LINK",
    "Constraint",
    "ConstraintType",
    "cannot_link",
    "must_link",
    "normalise_constraint_type",
]
