"""Pydantic schemas for the sweep report printed by the CLI"""
from datetime import date as Date
from typing import List, Optional

from pydantic import BaseModel, Field

from cuphandle.domain.backtesting.models import (
    HoldingPeriodDetail,
    SweepIssue,
    SweepResult,
    SymbolResult,
)


class SymbolResultSchema(BaseModel):
    """Win/lose tally for one symbol at one holding period"""

    symbol: str
    hold_days: int
    win_count: int
    lose_count: int
    unresolved_count: int = 0
    win_rate: Optional[float] = Field(None, description="None when no trade was counted")

    @classmethod
    def from_result(cls, result: SymbolResult) -> "SymbolResultSchema":
        return cls(
            symbol=result.symbol,
            hold_days=result.hold_days,
            win_count=result.win_count,
            lose_count=result.lose_count,
            unresolved_count=result.unresolved_count,
            win_rate=result.win_rate,
        )


class SweepIssueSchema(BaseModel):
    """A symbol left out of a grid point, and why"""

    symbol: str
    hold_days: Optional[int] = None
    condition: str
    detail: str

    @classmethod
    def from_issue(cls, issue: SweepIssue) -> "SweepIssueSchema":
        return cls(
            symbol=issue.symbol,
            hold_days=issue.hold_days,
            condition=issue.condition.value,
            detail=issue.detail,
        )


class HoldingPeriodSchema(BaseModel):
    """Basket totals for one holding period"""

    hold_days: int
    total_rate: float
    average_rate: float
    symbols: List[SymbolResultSchema] = Field(default_factory=list)
    issues: List[SweepIssueSchema] = Field(default_factory=list)

    @classmethod
    def from_detail(cls, detail: HoldingPeriodDetail) -> "HoldingPeriodSchema":
        return cls(
            hold_days=detail.hold_days,
            total_rate=detail.total_rate,
            average_rate=detail.average_rate,
            symbols=[SymbolResultSchema.from_result(r) for r in detail.symbol_results],
            issues=[SweepIssueSchema.from_issue(i) for i in detail.issues],
        )


class SweepReport(BaseModel):
    """Full holding-period sweep report"""

    symbols: List[str]
    start_date: Date
    end_date: Date
    min_cup_days: int
    max_cup_days: int
    unresolved_policy: str

    best_hold_days: int = Field(..., description="Holding period with the best basket win rate")
    best_average_win_rate: float = Field(..., description="Best total win rate / basket size")
    basket_size: int
    skipped_symbols: List[str] = Field(default_factory=list)
    holding_periods: List[HoldingPeriodSchema] = Field(default_factory=list)
    issues: List[SweepIssueSchema] = Field(default_factory=list)

    @classmethod
    def from_result(
        cls,
        result: SweepResult,
        *,
        symbols: List[str],
        start_date: Date,
        end_date: Date,
        min_cup_days: int,
        max_cup_days: int,
        unresolved_policy: str,
    ) -> "SweepReport":
        return cls(
            symbols=symbols,
            start_date=start_date,
            end_date=end_date,
            min_cup_days=min_cup_days,
            max_cup_days=max_cup_days,
            unresolved_policy=unresolved_policy,
            best_hold_days=result.best_hold_days,
            best_average_win_rate=result.best_average_win_rate,
            basket_size=result.basket_size,
            skipped_symbols=list(result.skipped_symbols),
            holding_periods=[HoldingPeriodSchema.from_detail(d) for d in result.details],
            issues=[SweepIssueSchema.from_issue(i) for i in result.issues],
        )
