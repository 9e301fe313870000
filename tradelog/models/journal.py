"""Strategy and journal entry data models."""

import json
from dataclasses import asdict, dataclass, field, fields
from typing import Optional


@dataclass(frozen=True)
class Strategy:
    """A named trading strategy that trades can be attributed to."""

    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    market_condition: Optional[str] = None
    timeframes: list[str] = field(default_factory=list)
    asset_classes: list[str] = field(default_factory=list)
    risk_reward_min: Optional[float] = None
    win_rate_expected: Optional[float] = None
    position_size_percentage: Optional[float] = None
    max_risk_percentage: Optional[float] = None
    is_active: bool = True
    is_public: bool = False
    id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "Strategy":
        """Build a ``Strategy`` from a DB row.

        List columns are stored as JSON text; booleans as 0/1 integers.
        """
        known = {f.name for f in fields(cls)}
        data = {k: v for k, v in row.items() if k in known}
        for key in ("timeframes", "asset_classes"):
            raw = data.get(key)
            data[key] = json.loads(raw) if raw else []
        for key in ("is_active", "is_public"):
            if key in data:
                data[key] = bool(data[key])
        return cls(**data)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class JournalEntry:
    """A free-form journal entry with optional self-assessment ratings."""

    title: str
    content: Optional[str] = None
    mood_rating: Optional[int] = None
    focus_rating: Optional[int] = None
    energy_rating: Optional[int] = None
    confidence_rating: Optional[int] = None
    is_public: bool = False
    id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "JournalEntry":
        known = {f.name for f in fields(cls)}
        data = {k: v for k, v in row.items() if k in known}
        if "is_public" in data:
            data["is_public"] = bool(data["is_public"])
        return cls(**data)

    def to_dict(self) -> dict:
        return asdict(self)
