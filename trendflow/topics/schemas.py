"""
Direction and topic types.

``Direction`` keeps the model's wire field names so directions stored in
``topics.metrics`` read back unchanged.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

PENDING_CN = "待分析"
PENDING_EN = "Pending"


def _clean_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _clean_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


class Direction(BaseModel):
    """One synthesized opportunity direction."""

    direction_title: str = Field(..., min_length=1)
    direction_name_cn: str = ""
    direction_name_en: str = ""
    summary: str = ""
    summary_cn: str = ""
    summary_en: str = ""
    target_user: str = ""
    target_audience: str = ""
    target_audience_cn: str = ""
    target_audience_en: str = ""
    pain_point: str = ""
    pain_point_cn: str = ""
    pain_point_en: str = ""
    opportunity_tag: str = ""
    opportunity_tag_cn: str = ""
    opportunity_tag_en: str = ""
    alternatives: str = ""
    value_prop: str = ""
    mvps: list[str] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)
    evidence: list[str] = Field(default_factory=list)

    @classmethod
    def from_raw(cls, raw: Any) -> "Direction | None":
        """
        Normalize one untrusted direction object.

        Strings are trimmed (non-strings become empty), list fields keep
        only non-blank strings, and the title falls back across
        ``direction_title``, ``direction_name_cn``, ``direction_name_en``.

        Returns:
            The direction, or None when raw is not an object or has no title
        """
        if not isinstance(raw, dict):
            return None

        data: dict[str, Any] = {}
        for name, info in cls.model_fields.items():
            if info.annotation == list[str]:
                data[name] = _clean_list(raw.get(name))
            else:
                data[name] = _clean_str(raw.get(name))

        data["direction_title"] = (
            data["direction_title"] or data["direction_name_cn"] or data["direction_name_en"]
        )
        if not data["direction_title"]:
            return None
        return cls(**data)


def build_fallback_direction(label: str, count: int) -> Direction:
    """Deterministic placeholder used when no analysis is available."""
    base = f"产品方向 - {label}"
    return Direction(
        direction_title=base,
        direction_name_cn=base,
        direction_name_en=f"Direction - {label}",
        summary=f"Based on {count} related discussions",
        summary_cn=f"基于 {count} 条相关讨论",
        summary_en=f"Based on {count} related discussions",
        target_user=PENDING_CN,
        target_audience=PENDING_CN,
        target_audience_cn=PENDING_CN,
        target_audience_en=PENDING_EN,
        pain_point=PENDING_CN,
        pain_point_cn=PENDING_CN,
        pain_point_en=PENDING_EN,
        opportunity_tag=PENDING_CN,
        opportunity_tag_cn=PENDING_CN,
        opportunity_tag_en=PENDING_EN,
        alternatives=PENDING_CN,
        value_prop=f"基于 {count} 条相关讨论",
    )


def pick_title(direction: Direction, label: str) -> str:
    return (
        direction.direction_name_cn
        or direction.direction_name_en
        or direction.direction_title
        or f"Topic from {label}"
    )


def pick_summary(direction: Direction, count: int) -> str:
    return (
        direction.summary_cn
        or direction.summary_en
        or direction.summary
        or f"{direction.target_user or PENDING_EN} - "
        f"{direction.pain_point or f'Based on {count} discussions'}"
    )


@dataclass
class ExamplePassage:
    text: str
    record_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "record_id": self.record_id}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExamplePassage":
        return cls(text=data.get("text", ""), record_id=data.get("record_id"))


@dataclass
class TopicMetrics:
    count: int = 0
    cluster_id: int | None = None
    directions: list[Direction] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "cluster_id": self.cluster_id,
            "directions": [d.model_dump() for d in self.directions],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "TopicMetrics":
        data = data or {}
        directions = [Direction.from_raw(raw) for raw in data.get("directions") or []]
        cluster_id = data.get("cluster_id")
        return cls(
            count=int(data.get("count") or 0),
            cluster_id=int(cluster_id) if cluster_id is not None else None,
            directions=[d for d in directions if d is not None],
        )


@dataclass
class Topic:
    """User-facing aggregation of a cluster; located by ``metrics.cluster_id``."""

    id: int | None
    title: str
    summary: str
    example_passages: list[ExamplePassage] = field(default_factory=list)
    metrics: TopicMetrics = field(default_factory=TopicMetrics)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class ClusterSample:
    """Members sampled from one cluster plus its full member count."""

    passages: list[ExamplePassage]
    total: int


@dataclass
class SynthesisResult:
    clusters: int = 0
    created: int = 0
    updated: int = 0
    stale: int = 0
    directions: int = 0
    fallbacks: int = 0
    errors: int = 0
    elapsed_seconds: float = 0.0
