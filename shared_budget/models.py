"""Row types for sectors, categories, budgets and transactions.

Raw rows arrive as plain dictionaries (one per database record).  Each type
provides a ``from_row`` constructor that tolerates missing optional columns
and raises :class:`~shared_budget.errors.InvalidBudgetRowError` when a row
cannot be interpreted at all.

Budget amounts are a tagged variant: :class:`AbsoluteAmount` for a single
household figure and :class:`SplitAmount` for per-user figures.  Both expose
the same ``total``/``user1_share``/``user2_share`` interface so callers never
need to branch on ``budget_type``.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional, Union

import pandas as pd

from .errors import InvalidBudgetRowError

BUDGET_TYPE_ABSOLUTE = 'absolute'
BUDGET_TYPE_SPLIT = 'split'

TRANSACTION_TYPES = {'expense', 'income', 'settlement', 'reimbursement'}


def _to_float(value: Any) -> float:
    """Convert nullable numeric cells to floats, treating blanks as zero."""
    if value is None:
        return 0.0
    if isinstance(value, str) and not value.strip():
        return 0.0
    try:
        if pd.isna(value):
            return 0.0
    except (TypeError, ValueError):
        pass
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidBudgetRowError(f"Not a number: {value!r}") from exc


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {'1', 'true', 'yes', 'y', 't'}
    if value is None:
        return False
    try:
        if pd.isna(value):
            return False
    except (TypeError, ValueError):
        pass
    return bool(value)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return str(value)


def _required_id(row: Dict[str, Any], key: str) -> str:
    value = _optional_str(row.get(key))
    if value is None:
        raise InvalidBudgetRowError(f"Row is missing '{key}': {row!r}")
    return value


def _required_year(row: Dict[str, Any]) -> int:
    try:
        return int(row['year'])
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidBudgetRowError(f"Row has no usable 'year': {row!r}") from exc


@dataclass(frozen=True, order=True)
class Period:
    """A budgeting month."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= int(self.month) <= 12:
            raise InvalidBudgetRowError(f"Month must be between 1 and 12, got {self.month}")

    @classmethod
    def from_date(cls, value: Union[date, datetime]) -> 'Period':
        return cls(value.year, value.month)

    @classmethod
    def parse(cls, text: str) -> 'Period':
        """Parse ``YYYY-MM`` strings."""
        try:
            year_text, month_text = text.strip().split('-', 1)
            return cls(int(year_text), int(month_text))
        except ValueError as exc:
            raise InvalidBudgetRowError(f"Expected YYYY-MM, got {text!r}") from exc

    def previous(self) -> 'Period':
        if self.month == 1:
            return Period(self.year - 1, 12)
        return Period(self.year, self.month - 1)

    def next(self) -> 'Period':
        if self.month == 12:
            return Period(self.year + 1, 1)
        return Period(self.year, self.month + 1)

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def label(self) -> str:
        return f"{calendar.month_name[self.month]} {self.year}"

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class AbsoluteAmount:
    """A single household figure; each user is attributed half of it."""

    amount: float

    budget_type = BUDGET_TYPE_ABSOLUTE

    @property
    def total(self) -> float:
        return self.amount

    @property
    def user1_share(self) -> float:
        return self.amount / 2

    @property
    def user2_share(self) -> float:
        return self.amount / 2

    def as_row(self) -> Dict[str, Any]:
        return {
            'budget_type': self.budget_type,
            'absolute_amount': self.amount,
            'user1_amount': self.user1_share,
            'user2_amount': self.user2_share,
        }


@dataclass(frozen=True)
class SplitAmount:
    """Independent per-user figures."""

    user1_amount: float
    user2_amount: float

    budget_type = BUDGET_TYPE_SPLIT

    @property
    def total(self) -> float:
        return self.user1_amount + self.user2_amount

    @property
    def user1_share(self) -> float:
        return self.user1_amount

    @property
    def user2_share(self) -> float:
        return self.user2_amount

    def as_row(self) -> Dict[str, Any]:
        return {
            'budget_type': self.budget_type,
            'absolute_amount': None,
            'user1_amount': self.user1_amount,
            'user2_amount': self.user2_amount,
        }


BudgetAmount = Union[AbsoluteAmount, SplitAmount]


def budget_amount_from_row(row: Dict[str, Any]) -> BudgetAmount:
    """Build the amount variant from ``budget_type`` and the amount columns."""
    budget_type = _optional_str(row.get('budget_type')) or BUDGET_TYPE_ABSOLUTE
    if budget_type == BUDGET_TYPE_ABSOLUTE:
        return AbsoluteAmount(_to_float(row.get('absolute_amount')))
    if budget_type == BUDGET_TYPE_SPLIT:
        return SplitAmount(_to_float(row.get('user1_amount')), _to_float(row.get('user2_amount')))
    raise InvalidBudgetRowError(f"Unknown budget_type {budget_type!r}")


def _optional_month(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    try:
        month = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidBudgetRowError(f"Not a month: {value!r}") from exc
    if not 1 <= month <= 12:
        raise InvalidBudgetRowError(f"Month must be between 1 and 12, got {month}")
    return month


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    image_url: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'Category':
        return cls(
            id=_required_id(row, 'id'),
            name=_optional_str(row.get('name')) or '',
            image_url=_optional_str(row.get('image_url')),
        )


@dataclass(frozen=True)
class Sector:
    id: str
    name: str
    category_ids: frozenset = field(default_factory=frozenset)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'Sector':
        raw_ids: Iterable[Any] = row.get('category_ids') or []
        return cls(
            id=_required_id(row, 'id'),
            name=_optional_str(row.get('name')) or '',
            category_ids=frozenset(str(c) for c in raw_ids if c is not None),
        )


@dataclass(frozen=True)
class CategoryBudget:
    """Budget for one category in one month, or for a whole year when ``month`` is None."""

    id: str
    category_id: str
    year: int
    month: Optional[int]
    amount: BudgetAmount

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'CategoryBudget':
        return cls(
            id=_required_id(row, 'id'),
            category_id=_required_id(row, 'category_id'),
            year=_required_year(row),
            month=_optional_month(row.get('month')),
            amount=budget_amount_from_row(row),
        )

    @property
    def period(self) -> Optional[Period]:
        return Period(self.year, self.month) if self.month is not None else None

    def for_period(self, period: Period, budget_id: str) -> 'CategoryBudget':
        return CategoryBudget(budget_id, self.category_id, period.year, period.month, self.amount)

    def as_row(self) -> Dict[str, Any]:
        row = {'id': self.id, 'category_id': self.category_id, 'year': self.year, 'month': self.month}
        row.update(self.amount.as_row())
        return row


@dataclass(frozen=True)
class SectorBudget:
    """Budget for one sector in one month, or for a whole year when ``month`` is None."""

    id: str
    sector_id: str
    year: int
    month: Optional[int]
    amount: BudgetAmount
    auto_rollup: bool = False

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'SectorBudget':
        return cls(
            id=_required_id(row, 'id'),
            sector_id=_required_id(row, 'sector_id'),
            year=_required_year(row),
            month=_optional_month(row.get('month')),
            amount=budget_amount_from_row(row),
            auto_rollup=_to_bool(row.get('auto_rollup')),
        )

    @property
    def period(self) -> Optional[Period]:
        return Period(self.year, self.month) if self.month is not None else None

    def for_period(self, period: Period, budget_id: str) -> 'SectorBudget':
        return SectorBudget(budget_id, self.sector_id, period.year, period.month, self.amount, self.auto_rollup)

    def as_row(self) -> Dict[str, Any]:
        row = {
            'id': self.id,
            'sector_id': self.sector_id,
            'year': self.year,
            'month': self.month,
            'auto_rollup': self.auto_rollup,
        }
        row.update(self.amount.as_row())
        return row


@dataclass(frozen=True)
class Transaction:
    id: str
    amount: float
    date: date
    transaction_type: str
    category_id: Optional[str] = None
    split_type: Optional[str] = None
    paid_by_user_id: Optional[str] = None
    paid_to_user_id: Optional[str] = None
    reimburses_transaction_id: Optional[str] = None
    excluded_from_monthly_budget: bool = False
    excluded_from_yearly_budget: bool = False

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'Transaction':
        parsed = pd.to_datetime(row.get('date'), errors='coerce')
        if pd.isna(parsed):
            raise InvalidBudgetRowError(f"Transaction has no usable date: {row!r}")
        transaction_type = _optional_str(row.get('transaction_type')) or 'expense'
        if transaction_type not in TRANSACTION_TYPES:
            raise InvalidBudgetRowError(f"Unknown transaction_type {transaction_type!r}")
        return cls(
            id=_required_id(row, 'id'),
            amount=_to_float(row.get('amount')),
            date=parsed.date(),
            transaction_type=transaction_type,
            category_id=_optional_str(row.get('category_id')),
            split_type=_optional_str(row.get('split_type')),
            paid_by_user_id=_optional_str(row.get('paid_by_user_id')),
            paid_to_user_id=_optional_str(row.get('paid_to_user_id')),
            reimburses_transaction_id=_optional_str(row.get('reimburses_transaction_id')),
            excluded_from_monthly_budget=_to_bool(row.get('excluded_from_monthly_budget')),
            excluded_from_yearly_budget=_to_bool(row.get('excluded_from_yearly_budget')),
        )

    def as_row(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'amount': self.amount,
            'date': self.date.isoformat(),
            'transaction_type': self.transaction_type,
            'category_id': self.category_id,
            'split_type': self.split_type,
            'paid_by_user_id': self.paid_by_user_id,
            'paid_to_user_id': self.paid_to_user_id,
            'reimburses_transaction_id': self.reimburses_transaction_id,
            'excluded_from_monthly_budget': self.excluded_from_monthly_budget,
            'excluded_from_yearly_budget': self.excluded_from_yearly_budget,
        }


@dataclass
class BudgetSummary:
    """Derived per-category figures for one period; never persisted."""

    category_id: str
    category_name: str
    year: int
    month: int
    budget_id: Optional[str] = None
    amount: Optional[BudgetAmount] = None
    category_image: Optional[str] = None
    current_period_budget: float = 0.0
    current_period_spent: float = 0.0
    current_period_user1_spent: float = 0.0
    current_period_user2_spent: float = 0.0
    current_period_remaining_amount: Optional[float] = None
    current_period_remaining_percentage: Optional[float] = None

    @property
    def has_budget(self) -> bool:
        return self.budget_id is not None

    @property
    def budget_type(self) -> Optional[str]:
        return self.amount.budget_type if self.amount is not None else None

    @property
    def nominal_budget(self) -> float:
        return self.amount.total if self.amount is not None else 0.0


@dataclass
class SectorBudgetSummary:
    """Derived per-sector figures for one period; never persisted."""

    sector_id: str
    sector_name: str
    year: int
    month: int
    budget_id: Optional[str] = None
    amount: Optional[BudgetAmount] = None
    auto_rollup: bool = False
    current_period_budget: float = 0.0
    current_period_spent: float = 0.0
    current_period_user1_spent: float = 0.0
    current_period_user2_spent: float = 0.0
    current_period_remaining_amount: Optional[float] = None
    current_period_remaining_percentage: Optional[float] = None
    category_budgets_total: float = 0.0

    @property
    def has_budget(self) -> bool:
        return self.budget_id is not None

    @property
    def budget_type(self) -> Optional[str]:
        return self.amount.budget_type if self.amount is not None else None

    @property
    def nominal_budget(self) -> float:
        return self.amount.total if self.amount is not None else 0.0

    @property
    def effective_budget(self) -> float:
        """Sum of child budgets under auto-rollup, the sector's own ceiling otherwise."""
        if self.auto_rollup:
            return self.category_budgets_total
        return self.nominal_budget
