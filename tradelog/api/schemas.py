"""Pydantic request schemas for the internal API.

Derived trade metrics have no request field; extra keys are rejected.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


Direction = Literal["long", "short"]
Status = Literal["planned", "open", "closed", "canceled"]
SizeUnit = Literal["shares", "contracts", "units", "currency"]


def _check_iso(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError("must be an ISO-8601 timestamp") from None
    return value


def _reject_nulls(model: BaseModel, names: tuple[str, ...]) -> BaseModel:
    """Partial updates may omit these fields but not set them to null."""
    for name in names:
        if name in model.model_fields_set and getattr(model, name) is None:
            raise ValueError(f"{name} cannot be null")
    return model


class TradeCreate(BaseModel):
    symbol: str = Field(min_length=1, max_length=32)
    direction: Direction
    status: Status = "planned"
    entry_date: Optional[str] = None
    exit_date: Optional[str] = None
    entry_price: Optional[float] = Field(default=None, gt=0)
    exit_price: Optional[float] = Field(default=None, gt=0)
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    position_size: float = Field(gt=0)
    position_size_unit: SizeUnit = "shares"
    fees: float = Field(default=0.0, ge=0)
    commissions: float = Field(default=0.0, ge=0)
    slippage: float = Field(default=0.0, ge=0)
    setup_type: Optional[str] = None
    timeframe: Optional[str] = None
    market_condition: Optional[str] = None
    strategy_id: Optional[int] = None
    notes: Optional[str] = None

    model_config = {"extra": "forbid", "allow_inf_nan": False}

    @field_validator("symbol")
    @classmethod
    def _normalise_symbol(cls, value: str) -> str:
        text = value.strip().upper()
        if not text:
            raise ValueError("must not be empty")
        return text

    @field_validator("entry_date", "exit_date")
    @classmethod
    def _validate_dates(cls, value: Optional[str]) -> Optional[str]:
        return _check_iso(value)


class TradeUpdate(BaseModel):
    symbol: Optional[str] = Field(default=None, min_length=1, max_length=32)
    direction: Optional[Direction] = None
    status: Optional[Status] = None
    entry_date: Optional[str] = None
    exit_date: Optional[str] = None
    entry_price: Optional[float] = Field(default=None, gt=0)
    exit_price: Optional[float] = Field(default=None, gt=0)
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    position_size: Optional[float] = Field(default=None, gt=0)
    position_size_unit: Optional[SizeUnit] = None
    fees: Optional[float] = Field(default=None, ge=0)
    commissions: Optional[float] = Field(default=None, ge=0)
    slippage: Optional[float] = Field(default=None, ge=0)
    setup_type: Optional[str] = None
    timeframe: Optional[str] = None
    market_condition: Optional[str] = None
    strategy_id: Optional[int] = None
    notes: Optional[str] = None

    model_config = {"extra": "forbid", "allow_inf_nan": False}

    @field_validator("symbol")
    @classmethod
    def _normalise_symbol(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().upper() if value is not None else value

    @field_validator("entry_date", "exit_date")
    @classmethod
    def _validate_dates(cls, value: Optional[str]) -> Optional[str]:
        return _check_iso(value)


class TradeOpen(BaseModel):
    entry_price: Optional[float] = Field(default=None, gt=0)
    entry_date: Optional[str] = None

    model_config = {"allow_inf_nan": False}

    @field_validator("entry_date")
    @classmethod
    def _validate_date(cls, value: Optional[str]) -> Optional[str]:
        return _check_iso(value)


class TradeClose(BaseModel):
    exit_price: float = Field(gt=0)
    exit_date: Optional[str] = None

    model_config = {"allow_inf_nan": False}

    @field_validator("exit_date")
    @classmethod
    def _validate_date(cls, value: Optional[str]) -> Optional[str]:
        return _check_iso(value)


class StrategyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: Optional[str] = None
    category: Optional[str] = None
    market_condition: Optional[str] = None
    timeframes: list[str] = Field(default_factory=list)
    asset_classes: list[str] = Field(default_factory=list)
    risk_reward_min: Optional[float] = Field(default=None, gt=0)
    win_rate_expected: Optional[float] = Field(default=None, ge=0, le=100)
    position_size_percentage: Optional[float] = Field(default=None, gt=0, le=100)
    max_risk_percentage: Optional[float] = Field(default=None, gt=0, le=100)
    is_active: bool = True
    is_public: bool = False

    model_config = {"extra": "forbid"}


class StrategyUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = None
    category: Optional[str] = None
    market_condition: Optional[str] = None
    timeframes: Optional[list[str]] = None
    asset_classes: Optional[list[str]] = None
    risk_reward_min: Optional[float] = Field(default=None, gt=0)
    win_rate_expected: Optional[float] = Field(default=None, ge=0, le=100)
    position_size_percentage: Optional[float] = Field(default=None, gt=0, le=100)
    max_risk_percentage: Optional[float] = Field(default=None, gt=0, le=100)
    is_active: Optional[bool] = None
    is_public: Optional[bool] = None

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def _required_not_null(self):
        return _reject_nulls(self, ("name", "is_active", "is_public"))


_Rating = Optional[int]


class JournalEntryCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: Optional[str] = None
    mood_rating: _Rating = Field(default=None, ge=1, le=10)
    focus_rating: _Rating = Field(default=None, ge=1, le=10)
    energy_rating: _Rating = Field(default=None, ge=1, le=10)
    confidence_rating: _Rating = Field(default=None, ge=1, le=10)
    is_public: bool = False

    model_config = {"extra": "forbid"}


class JournalEntryUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content: Optional[str] = None
    mood_rating: _Rating = Field(default=None, ge=1, le=10)
    focus_rating: _Rating = Field(default=None, ge=1, le=10)
    energy_rating: _Rating = Field(default=None, ge=1, le=10)
    confidence_rating: _Rating = Field(default=None, ge=1, le=10)
    is_public: Optional[bool] = None

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def _required_not_null(self):
        return _reject_nulls(self, ("title", "is_public"))
