"""
Plan feature allow-lists.

Each allow-list key in Plan.features has three distinct states that must never
be conflated:

    key absent            -> UNRESTRICTED
    key present, []       -> NONE_ALLOWED
    key present, [a, b]   -> ONLY_THESE (a, b)

A list containing the "ALL" sentinel behaves as unrestricted while still
reporting its stored values verbatim.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Tuple

from examprep.config.billing import FEATURE_ALL_SENTINEL

logger = logging.getLogger(__name__)

ALLOWED_EXAMS_KEY = "allowedExams"
ALLOWED_SUBJECT_IDS_KEY = "allowedSubjectIds"
ALLOWED_YEARS_KEY = "allowedYears"

FEATURE_KEYS = (ALLOWED_EXAMS_KEY, ALLOWED_SUBJECT_IDS_KEY, ALLOWED_YEARS_KEY)


class RestrictionKind(str, enum.Enum):
    UNRESTRICTED = "unrestricted"
    NONE_ALLOWED = "none_allowed"
    ONLY_THESE = "only_these"


@dataclass(frozen=True)
class FeatureRestriction:
    """Tagged allow-list value: Unrestricted | NoneAllowed | OnlyThese(values)."""

    kind: RestrictionKind
    values: Tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        if self.kind != RestrictionKind.ONLY_THESE and self.values:
            raise ValueError(f"{self.kind.value} restriction cannot carry values")
        if self.kind == RestrictionKind.ONLY_THESE and not self.values:
            raise ValueError("only_these restriction requires at least one value")
        object.__setattr__(self, "values", tuple(self.values))

    @classmethod
    def unrestricted(cls) -> "FeatureRestriction":
        return cls(RestrictionKind.UNRESTRICTED)

    @classmethod
    def none_allowed(cls) -> "FeatureRestriction":
        return cls(RestrictionKind.NONE_ALLOWED)

    @classmethod
    def only(cls, values: Iterable[Any]) -> "FeatureRestriction":
        values = tuple(values)
        if not values:
            return cls.none_allowed()
        return cls(RestrictionKind.ONLY_THESE, values)

    @classmethod
    def from_features(cls, features: Optional[Mapping[str, Any]], key: str) -> "FeatureRestriction":
        """
        Read one allow-list out of a plan's features JSON.

        A malformed value (not a list) fails closed as NONE_ALLOWED.
        """
        if not features or key not in features:
            return cls.unrestricted()
        raw = features[key]
        if raw is None:
            return cls.unrestricted()
        if not isinstance(raw, (list, tuple)):
            logger.warning(
                "Malformed plan feature allow-list, denying all",
                extra={"feature_key": key, "value_type": type(raw).__name__},
            )
            return cls.none_allowed()
        return cls.only(raw)

    @property
    def is_unrestricted(self) -> bool:
        """True for an absent key or a list holding the ALL sentinel."""
        if self.kind == RestrictionKind.UNRESTRICTED:
            return True
        return self.kind == RestrictionKind.ONLY_THESE and FEATURE_ALL_SENTINEL in self.values

    @property
    def is_none_allowed(self) -> bool:
        return self.kind == RestrictionKind.NONE_ALLOWED

    def allows(self, *candidates: Any) -> bool:
        """
        True if any candidate identifier is covered.

        Candidates and stored values are compared as strings so that years
        stored as "2021" match an integer 2021.
        """
        if self.is_unrestricted:
            return True
        if self.is_none_allowed:
            return False
        allowed = {str(v) for v in self.values}
        return any(c is not None and str(c) in allowed for c in candidates)

    def as_optional_list(self) -> Optional[list]:
        """Verbatim three-way form: None (absent), [] or the stored list."""
        if self.kind == RestrictionKind.UNRESTRICTED:
            return None
        return list(self.values)
