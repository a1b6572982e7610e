"""
Data types shared by the ranking engine and the insight assembler.

KeywordSeries instances are built once when the dataset is loaded and are
treated as read-only afterwards. Everything else here is derived per request.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping


class KeywordCategory(str, Enum):
    """Coarse keyword classification used to pick the prompt angle."""
    INSURANCE = "insurance"
    SIDEJOB = "sidejob"
    UNKNOWN = "unknown"

    @property
    def display_name(self) -> str:
        return CATEGORY_LABELS[self]


CATEGORY_LABELS = {
    KeywordCategory.INSURANCE: "보험",
    KeywordCategory.SIDEJOB: "부업·N잡",
    KeywordCategory.UNKNOWN: "기타",
}


@dataclass(frozen=True)
class KeywordSeries:
    """Historical monthly search volume for one keyword plus demographic shares."""
    keyword: str
    monthly_data: Mapping[str, int] = field(default_factory=dict)
    male_percent: float = 0.0
    female_percent: float = 0.0
    age_groups: Mapping[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class GrowthRecord:
    keyword: str
    growth: float
    volume: int


@dataclass(frozen=True)
class MonthVolume:
    """One entry of a trailing window; label is formatted as YYYY.MM."""
    label: str
    volume: int

    def to_dict(self) -> Dict[str, Any]:
        return {"month": self.label, "volume": self.volume}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MonthVolume":
        return cls(label=str(data.get("month", "")), volume=int(data.get("volume") or 0))


@dataclass(frozen=True)
class KeywordMetrics:
    """Per-keyword payload the dashboard sends with an insight request."""
    keyword: str
    growth: float
    volume: int
    previous_months: List[MonthVolume] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyword": self.keyword,
            "growth": self.growth,
            "volume": self.volume,
            "previousMonths": [m.to_dict() for m in self.previous_months],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KeywordMetrics":
        months = data.get("previousMonths", data.get("previous_months")) or []
        return cls(
            keyword=str(data.get("keyword", "")).strip(),
            growth=float(data.get("growth") or 0.0),
            volume=int(data.get("volume") or 0),
            previous_months=[MonthVolume.from_dict(m) for m in months],
        )
