"""Domain models - immutable dataclasses for ledger records and engine outputs"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple, Union

from pennypath_engine.domain.diagnostics import Diagnostic
from pennypath_engine.domain.exceptions import MalformedRecurrenceError
from pennypath_engine.utils.date_utils import add_calendar_units_or_anchor
from pennypath_engine.utils.money import ZERO, to_money

# rule value -> (calendar unit, count) for one step
_STEPS = {
    "daily": ("day", 1),
    "weekly": ("week", 1),
    "biweekly": ("week", 2),
    "monthly": ("month", 1),
    "yearly": ("year", 1),
}


class AccountType(str, Enum):
    """Kinds of account and the behaviour each allows"""

    CURRENT = "current"
    SAVINGS = "savings"
    CREDIT = "credit"
    LOAN = "loan"
    BNPL = "bnpl"
    FAMILY_FRIEND = "family_friend"
    DEBT_COLLECTION = "debt_collection"
    PREPAID = "prepaid"
    INVESTMENT = "investment"

    @property
    def display_name(self) -> str:
        return _ACCOUNT_DISPLAY_NAMES[self]

    @property
    def can_have_positive_balance(self) -> bool:
        # family/friend accounts can hold money lent TO others
        return self not in (AccountType.CREDIT, AccountType.LOAN, AccountType.BNPL, AccountType.DEBT_COLLECTION)

    @property
    def is_liability(self) -> bool:
        return not self.can_have_positive_balance

    @property
    def supports_scheduled_payments(self) -> bool:
        return self in (AccountType.LOAN, AccountType.BNPL)

    @property
    def supports_flexible_payments(self) -> bool:
        return self in (AccountType.FAMILY_FRIEND, AccountType.DEBT_COLLECTION)

    @property
    def affects_credit_score(self) -> bool:
        return self in (AccountType.CREDIT, AccountType.LOAN, AccountType.BNPL, AccountType.DEBT_COLLECTION)

    @property
    def is_prepaid_type(self) -> bool:
        return self is AccountType.PREPAID


_ACCOUNT_DISPLAY_NAMES = {
    AccountType.CURRENT: "Current Account",
    AccountType.SAVINGS: "Savings Account",
    AccountType.CREDIT: "Credit Card",
    AccountType.LOAN: "Loan",
    AccountType.BNPL: "Buy Now Pay Later",
    AccountType.FAMILY_FRIEND: "Family & Friends",
    AccountType.DEBT_COLLECTION: "Debt Collection",
    AccountType.PREPAID: "Prepaid/Cash Card",
    AccountType.INVESTMENT: "Investment Account",
}


class RecurrenceRule(str, Enum):
    """How often a scheduled transaction repeats"""

    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, raw: Union["RecurrenceRule", str, None]) -> Optional["RecurrenceRule"]:
        """Resolve a stored value to a rule; unknown values mean non-recurring"""
        try:
            return cls.parse_strict(raw)
        except MalformedRecurrenceError:
            return None

    @classmethod
    def parse_strict(cls, raw: Union["RecurrenceRule", str, None]) -> Optional["RecurrenceRule"]:
        if raw is None or isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError as e:
            raise MalformedRecurrenceError(f"Unsupported recurrence: {raw!r}") from e

    def next_date(self, value: datetime) -> datetime:
        """Next occurrence after ``value``; returns ``value`` itself if the step cannot be computed"""
        unit, count = _STEPS[self.value]
        return add_calendar_units_or_anchor(value, unit, count)

    @property
    def fixed_step(self) -> Optional[timedelta]:
        """Exact spacing between occurrences; None for calendar-length steps"""
        unit, count = _STEPS[self.value]
        if unit == "day":
            return timedelta(days=count)
        if unit == "week":
            return timedelta(weeks=count)
        return None


class PaymentFrequency(str, Enum):
    """Installment cadence for BNPL plans and other scheduled payments"""

    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @property
    def step(self) -> Tuple[str, int]:
        """(calendar unit, count) advanced per installment"""
        return _STEPS[self.value]


class ArrangementType(str, Enum):
    FAMILY_FRIEND_LOAN = "family_friend_loan"
    DEBT_COLLECTION = "debt_collection"


class RelationshipType(str, Enum):
    PARENT = "parent"
    SIBLING = "sibling"
    CHILD = "child"
    PARTNER = "partner"
    FRIEND = "friend"
    OTHER = "other"


class TransferType(str, Enum):
    MANUAL = "manual"
    TOP_UP = "top_up"
    PAYOFF = "payoff"
    SAVINGS = "savings"


class TransactionTypeFilter(str, Enum):
    """Direction filter for transaction listings; transfers are uncategorised entries"""

    ALL = "all"
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class DateRangeFilter(str, Enum):
    """Named periods relative to now"""

    TODAY = "today"
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"
    LAST_MONTH = "last_month"
    LAST_3_MONTHS = "last_3_months"
    THIS_YEAR = "this_year"


class AccountGroupType(str, Enum):
    """Display grouping of account types, in display order"""

    TRADITIONAL = "traditional"
    CREDIT = "credit"
    MODERN_CREDIT = "modern_credit"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return _GROUP_DISPLAY_NAMES[self]

    @property
    def account_types(self) -> Tuple[AccountType, ...]:
        return _GROUP_MEMBERS[self]


_GROUP_DISPLAY_NAMES = {
    AccountGroupType.TRADITIONAL: "Banking & Savings",
    AccountGroupType.CREDIT: "Credit & Loans",
    AccountGroupType.MODERN_CREDIT: "Modern Credit",
    AccountGroupType.OTHER: "Other Accounts",
}

_GROUP_MEMBERS = {
    AccountGroupType.TRADITIONAL: (AccountType.CURRENT, AccountType.SAVINGS, AccountType.INVESTMENT),
    AccountGroupType.CREDIT: (AccountType.CREDIT, AccountType.LOAN),
    AccountGroupType.MODERN_CREDIT: (AccountType.BNPL, AccountType.FAMILY_FRIEND, AccountType.DEBT_COLLECTION),
    AccountGroupType.OTHER: (AccountType.PREPAID,),
}


@dataclass(frozen=True)
class Account:
    """Financial account; balance > 0 is asset-like, < 0 is outstanding liability"""

    id: str
    user_id: str
    name: str
    type: AccountType
    balance: Decimal = ZERO
    created_at: Optional[datetime] = None

    # Credit card
    credit_limit: Optional[Decimal] = None

    # Loan / mortgage
    original_loan_amount: Optional[Decimal] = None
    loan_term_months: Optional[int] = None
    loan_start_date: Optional[date] = None
    interest_rate: Optional[Decimal] = None
    monthly_payment: Optional[Decimal] = None

    # BNPL
    bnpl_provider: Optional[str] = None

    @property
    def available_credit(self) -> Optional[Decimal]:
        if self.credit_limit is None or self.type is not AccountType.CREDIT:
            return None
        # Card balances are negative, so available = limit + balance
        return self.credit_limit + self.balance

    @property
    def credit_utilization(self) -> Optional[float]:
        if self.credit_limit is None or self.credit_limit <= 0 or self.type is not AccountType.CREDIT:
            return None
        return float(abs(self.balance) / self.credit_limit)

    @property
    def loan_progress(self) -> Optional[float]:
        """Share of the original loan already repaid"""
        if self.original_loan_amount is None or self.original_loan_amount <= 0 or self.type is not AccountType.LOAN:
            return None
        paid = self.original_loan_amount - abs(self.balance)
        return float(paid / self.original_loan_amount)


@dataclass(frozen=True)
class Category:
    id: str
    user_id: str
    name: str
    color: str = "#999999"
    icon: str = "tag"
    parent_id: Optional[str] = None


@dataclass(frozen=True)
class Transaction:
    """Ledger entry (posted) or projected future event (scheduled)"""

    id: str
    user_id: str
    account_id: str
    amount: Decimal  # positive = inflow, negative = outflow
    description: str
    date: datetime
    category_id: Optional[str] = None
    bnpl_plan_id: Optional[str] = None
    event_id: Optional[str] = None
    is_scheduled: bool = False
    is_paid: bool = False
    recurrence: Optional[Union[RecurrenceRule, str]] = None  # raw values may be malformed
    created_at: Optional[datetime] = None

    @property
    def is_posted(self) -> bool:
        return not self.is_scheduled

    @property
    def recurrence_rule(self) -> Optional[RecurrenceRule]:
        return RecurrenceRule.parse(self.recurrence)


@dataclass(frozen=True)
class BNPLPlan:
    """Buy-now-pay-later terms; the schedule itself is derived"""

    id: str
    user_id: str
    account_id: str
    provider_name: str
    total_amount: Decimal
    number_of_installments: int
    start_date: date
    frequency: PaymentFrequency = PaymentFrequency.BIWEEKLY
    description: str = ""
    late_fee: Decimal = ZERO
    interest_rate: Decimal = ZERO  # annual percentage rate
    is_completed: bool = False
    created_at: Optional[datetime] = None

    @property
    def installment_amount(self) -> Decimal:
        """Regular installment rounded to currency precision (zero for an unusable plan)"""
        if self.number_of_installments <= 0:
            return ZERO
        return to_money(self.total_amount / self.number_of_installments)


@dataclass(frozen=True)
class FlexibleArrangement:
    """Informal repayment arrangement with no fixed installment schedule"""

    id: str
    user_id: str
    account_id: str
    type: ArrangementType
    original_amount: Decimal
    start_date: date
    description: str = ""
    target_completion_date: Optional[date] = None
    minimum_payment: Optional[Decimal] = None
    suggested_payment: Optional[Decimal] = None
    notes: str = ""
    is_active: bool = True
    created_at: Optional[datetime] = None

    # Family/friend counterparty
    relationship_type: Optional[RelationshipType] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None

    # Debt collection counterparty
    original_creditor: Optional[str] = None
    collection_agency: Optional[str] = None
    reference_number: Optional[str] = None
    settlement_amount: Optional[Decimal] = None


@dataclass(frozen=True)
class Budget:
    """Spending limit for one category in one calendar month"""

    id: str
    user_id: str
    category_id: str
    amount: Decimal
    month: int  # 1-12
    year: int
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Transfer:
    """Money moved between two of the user's own accounts; amount is always positive"""

    id: str
    user_id: str
    from_account_id: str
    to_account_id: str
    amount: Decimal
    description: str
    date: datetime
    transfer_type: TransferType = TransferType.MANUAL
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Event:
    """Occasion or project that transactions can be tagged with"""

    id: str
    user_id: str
    name: str
    description: str = ""
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    color: str = "#45B7D1"
    icon: str = "calendar"
    is_active: bool = True
    created_at: Optional[datetime] = None

    def is_currently_active(self, now: datetime) -> bool:
        """Flagged active and ``now`` inside whichever bounds are set"""
        if not self.is_active:
            return False
        if self.start_date is not None and self.start_date > now:
            return False
        if self.end_date is not None and self.end_date < now:
            return False
        return True


@dataclass(frozen=True)
class TransactionFilter:
    """Criteria for transaction listings; unset fields do not filter"""

    search_text: str = ""
    account_id: Optional[str] = None
    category_id: Optional[str] = None
    event_id: Optional[str] = None
    transaction_type: TransactionTypeFilter = TransactionTypeFilter.ALL
    date_range: Optional[DateRangeFilter] = DateRangeFilter.THIS_MONTH

    @property
    def has_active_filters(self) -> bool:
        return (
            bool(self.search_text)
            or self.account_id is not None
            or self.category_id is not None
            or self.event_id is not None
            or self.transaction_type is not TransactionTypeFilter.ALL
            or self.date_range is not DateRangeFilter.THIS_MONTH
        )


@dataclass(frozen=True)
class LedgerSnapshot:
    """Consistent, read-only view of every collection the engine reads"""

    accounts: Tuple[Account, ...] = ()
    transactions: Tuple[Transaction, ...] = ()
    categories: Tuple[Category, ...] = ()
    budgets: Tuple[Budget, ...] = ()
    bnpl_plans: Tuple[BNPLPlan, ...] = ()
    flexible_arrangements: Tuple[FlexibleArrangement, ...] = ()
    transfers: Tuple[Transfer, ...] = ()
    events: Tuple[Event, ...] = ()


# ---------------------------------------------------------------------------
# Engine outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProjectedOccurrence:
    """One dated instance of a scheduled (possibly recurring) transaction"""

    transaction: Transaction
    date: datetime
    occurrence_index: int  # 0 = the source transaction's own date

    @property
    def amount(self) -> Decimal:
        return self.transaction.amount

    @property
    def account_id(self) -> str:
        return self.transaction.account_id

    @property
    def transaction_id(self) -> str:
        return self.transaction.id

    @property
    def is_recurrence(self) -> bool:
        return self.occurrence_index > 0


@dataclass(frozen=True)
class ForecastPoint:
    date: date
    balance: Decimal
    is_projected: bool


@dataclass(frozen=True)
class BalanceForecast:
    account_id: str
    current_balance: Decimal
    points: Tuple[ForecastPoint, ...]

    @property
    def projected_balance(self) -> Decimal:
        """Balance at the end of the horizon"""
        return self.points[-1].balance if self.points else self.current_balance

    @property
    def lowest_point(self) -> Optional[ForecastPoint]:
        projected = [p for p in self.points if p.is_projected]
        return min(projected, key=lambda p: p.balance) if projected else None


@dataclass(frozen=True)
class BudgetProgress:
    budget_id: str
    category_id: str
    category_name: str
    category_color: str
    category_icon: str
    budget_amount: Decimal
    spent_amount: Decimal

    @property
    def progress_percentage(self) -> float:
        if self.budget_amount <= 0:
            return 0.0
        return min(float(self.spent_amount / self.budget_amount), 1.0)

    @property
    def is_over_budget(self) -> bool:
        return self.spent_amount > self.budget_amount

    @property
    def remaining_amount(self) -> Decimal:
        return max(self.budget_amount - self.spent_amount, ZERO)


@dataclass(frozen=True)
class Installment:
    """Single payment in a repayment plan"""

    number: int  # 1-based
    due_date: date
    amount: Decimal


@dataclass(frozen=True)
class BNPLPlanStatus:
    plan_id: str
    installments: Tuple[Installment, ...]
    payments_made: int
    payments_due: int
    has_overdue_payments: bool
    next_installment: Optional[Installment]
    remaining_amount: Decimal
    final_payment_date: Optional[date]


@dataclass(frozen=True)
class ArrangementStatus:
    arrangement_id: str
    total_paid: Decimal
    remaining_balance: Decimal  # negative = paid more than owed
    paid_this_month: Decimal
    is_overdue: bool
    progress: float
    required_monthly_payment: Optional[Decimal]

    @property
    def is_overpaid(self) -> bool:
        return self.remaining_balance < 0


@dataclass(frozen=True)
class AccountSummary:
    account_id: str
    recent_transactions: Tuple[Transaction, ...]
    upcoming: Tuple[ProjectedOccurrence, ...]
    current_month_spending: Decimal
    current_month_income: Decimal
    transaction_count: int
    outstanding_bnpl_plans: int
    next_bnpl_payment: Optional[ProjectedOccurrence]


@dataclass(frozen=True)
class DashboardSummary:
    net_worth: Decimal
    current_month_spending: Decimal
    upcoming: Tuple[ProjectedOccurrence, ...]
    budget_progress: Tuple[BudgetProgress, ...]
    forecasts: Tuple[BalanceForecast, ...]
    bnpl_statuses: Tuple[BNPLPlanStatus, ...]
    arrangement_statuses: Tuple[ArrangementStatus, ...]
    diagnostics: Tuple[Diagnostic, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AccountGroup:
    type: AccountGroupType
    accounts: Tuple[Account, ...]

    @property
    def total_balance(self) -> Decimal:
        return sum((a.balance for a in self.accounts), ZERO)


@dataclass(frozen=True)
class TransactionSummaryStats:
    """Totals over a filtered transaction listing; expense is reported as a magnitude"""

    total_transactions: int
    total_amount: Decimal
    income_amount: Decimal
    expense_amount: Decimal
    average_transaction: Decimal

    @property
    def net_amount(self) -> Decimal:
        return self.income_amount - self.expense_amount
