"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from pennypath_engine.domain.diagnostics import Diagnostic
from pennypath_engine.domain.models import (
    Account,
    AccountGroup,
    AccountSummary,
    AccountType,
    ArrangementStatus,
    ArrangementType,
    BalanceForecast,
    BNPLPlan,
    BNPLPlanStatus,
    Budget,
    BudgetProgress,
    Category,
    DashboardSummary,
    Event,
    FlexibleArrangement,
    Installment,
    LedgerSnapshot,
    PaymentFrequency,
    ProjectedOccurrence,
    RelationshipType,
    Transaction,
    TransactionSummaryStats,
    Transfer,
    TransferType,
)


def _naive(value: Optional[datetime]) -> Optional[datetime]:
    """Engine compares naive datetimes; aware input is normalised to UTC first"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# ---------------------------------------------------------------------------
# Snapshot records
# ---------------------------------------------------------------------------


class AccountSchema(BaseModel):
    id: str
    user_id: str = ""
    name: str = ""
    type: AccountType
    balance: Decimal = Decimal("0.00")
    created_at: Optional[datetime] = None
    credit_limit: Optional[Decimal] = None
    original_loan_amount: Optional[Decimal] = None
    loan_term_months: Optional[int] = None
    loan_start_date: Optional[date] = None
    interest_rate: Optional[Decimal] = None
    monthly_payment: Optional[Decimal] = None
    bnpl_provider: Optional[str] = None

    def to_domain(self) -> Account:
        return Account(**{**self.model_dump(), "created_at": _naive(self.created_at)})


class CategorySchema(BaseModel):
    id: str
    user_id: str = ""
    name: str
    color: str = "#999999"
    icon: str = "tag"
    parent_id: Optional[str] = None

    def to_domain(self) -> Category:
        return Category(**self.model_dump())


class TransactionSchema(BaseModel):
    id: str
    user_id: str = ""
    account_id: str
    amount: Decimal = Field(..., description="Positive for income, negative for expenses")
    description: str = ""
    date: datetime
    category_id: Optional[str] = None
    bnpl_plan_id: Optional[str] = None
    event_id: Optional[str] = None
    is_scheduled: bool = False
    is_paid: bool = False
    # Kept as free text so an unknown rule degrades inside the engine instead of failing validation
    recurrence: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_domain(self) -> Transaction:
        return Transaction(**{**self.model_dump(), "date": _naive(self.date), "created_at": _naive(self.created_at)})


class BNPLPlanSchema(BaseModel):
    id: str
    user_id: str = ""
    account_id: str
    provider_name: str
    total_amount: Decimal
    number_of_installments: int
    start_date: date
    frequency: PaymentFrequency = PaymentFrequency.BIWEEKLY
    description: str = ""
    late_fee: Decimal = Decimal("0.00")
    interest_rate: Decimal = Decimal("0.00")
    is_completed: bool = False
    created_at: Optional[datetime] = None

    def to_domain(self) -> BNPLPlan:
        return BNPLPlan(**{**self.model_dump(), "created_at": _naive(self.created_at)})


class FlexibleArrangementSchema(BaseModel):
    id: str
    user_id: str = ""
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
    relationship_type: Optional[RelationshipType] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    original_creditor: Optional[str] = None
    collection_agency: Optional[str] = None
    reference_number: Optional[str] = None
    settlement_amount: Optional[Decimal] = None

    def to_domain(self) -> FlexibleArrangement:
        return FlexibleArrangement(**{**self.model_dump(), "created_at": _naive(self.created_at)})


class BudgetSchema(BaseModel):
    id: str
    user_id: str = ""
    category_id: str
    amount: Decimal
    month: int
    year: int
    created_at: Optional[datetime] = None

    def to_domain(self) -> Budget:
        return Budget(**{**self.model_dump(), "created_at": _naive(self.created_at)})


class TransferSchema(BaseModel):
    id: str
    user_id: str = ""
    from_account_id: str
    to_account_id: str
    amount: Decimal = Field(..., description="Always positive; the direction comes from the account ids")
    description: str = ""
    date: datetime
    transfer_type: TransferType = TransferType.MANUAL
    created_at: Optional[datetime] = None

    def to_domain(self) -> Transfer:
        return Transfer(**{**self.model_dump(), "date": _naive(self.date), "created_at": _naive(self.created_at)})


class EventSchema(BaseModel):
    id: str
    user_id: str = ""
    name: str
    description: str = ""
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    color: str = "#45B7D1"
    icon: str = "calendar"
    is_active: bool = True
    created_at: Optional[datetime] = None

    def to_domain(self) -> Event:
        return Event(
            **{
                **self.model_dump(),
                "start_date": _naive(self.start_date),
                "end_date": _naive(self.end_date),
                "created_at": _naive(self.created_at),
            }
        )


class SnapshotRequest(BaseModel):
    """Request body shared by every engine endpoint"""

    now: Optional[datetime] = Field(None, description="Reference time; server clock when omitted")
    accounts: List[AccountSchema] = []
    transactions: List[TransactionSchema] = []
    categories: List[CategorySchema] = []
    budgets: List[BudgetSchema] = []
    bnpl_plans: List[BNPLPlanSchema] = []
    flexible_arrangements: List[FlexibleArrangementSchema] = []
    transfers: List[TransferSchema] = []
    events: List[EventSchema] = []

    @field_validator("now")
    @classmethod
    def _strip_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _naive(value)

    def to_snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            accounts=tuple(a.to_domain() for a in self.accounts),
            transactions=tuple(t.to_domain() for t in self.transactions),
            categories=tuple(c.to_domain() for c in self.categories),
            budgets=tuple(b.to_domain() for b in self.budgets),
            bnpl_plans=tuple(p.to_domain() for p in self.bnpl_plans),
            flexible_arrangements=tuple(f.to_domain() for f in self.flexible_arrangements),
            transfers=tuple(t.to_domain() for t in self.transfers),
            events=tuple(e.to_domain() for e in self.events),
        )


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class DiagnosticSchema(BaseModel):
    kind: str
    record_id: Optional[str] = None
    detail: str

    @classmethod
    def from_domain(cls, diagnostic: Diagnostic) -> "DiagnosticSchema":
        return cls(kind=diagnostic.kind.value, record_id=diagnostic.record_id, detail=diagnostic.detail)


class ForecastPointSchema(BaseModel):
    date: date
    balance: Decimal
    is_projected: bool


class ForecastResponse(BaseModel):
    """Response for POST /v1/forecast/{account_id}"""

    account_id: str
    current_balance: Decimal
    projected_balance: Decimal
    points: List[ForecastPointSchema]
    diagnostics: List[DiagnosticSchema] = []

    @classmethod
    def from_domain(cls, forecast: BalanceForecast, diagnostics: List[Diagnostic]) -> "ForecastResponse":
        return cls(
            account_id=forecast.account_id,
            current_balance=forecast.current_balance,
            projected_balance=forecast.projected_balance,
            points=[ForecastPointSchema(date=p.date, balance=p.balance, is_projected=p.is_projected) for p in forecast.points],
            diagnostics=[DiagnosticSchema.from_domain(d) for d in diagnostics],
        )


class OccurrenceSchema(BaseModel):
    """One upcoming obligation"""

    transaction_id: str
    account_id: str
    description: str
    amount: Decimal
    date: datetime
    bnpl_plan_id: Optional[str] = None
    recurrence: Optional[str] = None
    is_recurrence: bool = False

    @classmethod
    def from_domain(cls, occurrence: ProjectedOccurrence) -> "OccurrenceSchema":
        rule = occurrence.transaction.recurrence_rule
        return cls(
            transaction_id=occurrence.transaction_id,
            account_id=occurrence.account_id,
            description=occurrence.transaction.description,
            amount=occurrence.amount,
            date=occurrence.date,
            bnpl_plan_id=occurrence.transaction.bnpl_plan_id,
            recurrence=rule.value if rule else None,
            is_recurrence=occurrence.is_recurrence,
        )


class UpcomingResponse(BaseModel):
    """Response for POST /v1/upcoming"""

    upcoming: List[OccurrenceSchema]
    diagnostics: List[DiagnosticSchema] = []


class BudgetProgressSchema(BaseModel):
    budget_id: str
    category_id: str
    category_name: str
    category_color: str
    category_icon: str
    budget_amount: Decimal
    spent_amount: Decimal
    progress_percentage: float
    is_over_budget: bool
    remaining_amount: Decimal

    @classmethod
    def from_domain(cls, progress: BudgetProgress) -> "BudgetProgressSchema":
        return cls(
            budget_id=progress.budget_id,
            category_id=progress.category_id,
            category_name=progress.category_name,
            category_color=progress.category_color,
            category_icon=progress.category_icon,
            budget_amount=progress.budget_amount,
            spent_amount=progress.spent_amount,
            progress_percentage=progress.progress_percentage,
            is_over_budget=progress.is_over_budget,
            remaining_amount=progress.remaining_amount,
        )


class BudgetProgressResponse(BaseModel):
    """Response for POST /v1/budgets/progress"""

    month: int
    year: int
    budgets: List[BudgetProgressSchema]
    diagnostics: List[DiagnosticSchema] = []


class InstallmentSchema(BaseModel):
    """Single installment in a repayment plan"""

    number: int
    due_date: date
    amount: Decimal

    @classmethod
    def from_domain(cls, installment: Installment) -> "InstallmentSchema":
        return cls(number=installment.number, due_date=installment.due_date, amount=installment.amount)


class PlanScheduleResponse(BaseModel):
    """Response for POST /v1/plans/{plan_id}/schedule"""

    plan_id: str
    installments: List[InstallmentSchema]
    payments_made: int
    payments_due: int
    has_overdue_payments: bool
    next_installment: Optional[InstallmentSchema] = None
    remaining_amount: Decimal
    final_payment_date: Optional[date] = None
    diagnostics: List[DiagnosticSchema] = []

    @classmethod
    def from_domain(cls, status: BNPLPlanStatus, diagnostics: List[Diagnostic]) -> "PlanScheduleResponse":
        return cls(
            plan_id=status.plan_id,
            installments=[InstallmentSchema.from_domain(i) for i in status.installments],
            payments_made=status.payments_made,
            payments_due=status.payments_due,
            has_overdue_payments=status.has_overdue_payments,
            next_installment=InstallmentSchema.from_domain(status.next_installment) if status.next_installment else None,
            remaining_amount=status.remaining_amount,
            final_payment_date=status.final_payment_date,
            diagnostics=[DiagnosticSchema.from_domain(d) for d in diagnostics],
        )


class ArrangementStatusResponse(BaseModel):
    """Response for POST /v1/arrangements/{arrangement_id}/status"""

    arrangement_id: str
    total_paid: Decimal
    remaining_balance: Decimal
    paid_this_month: Decimal
    is_overdue: bool
    is_overpaid: bool
    progress: float
    required_monthly_payment: Optional[Decimal] = None
    suggested_overpayment: Optional[Decimal] = None
    diagnostics: List[DiagnosticSchema] = []

    @classmethod
    def from_domain(
        cls,
        status: ArrangementStatus,
        suggested_overpayment: Optional[Decimal] = None,
        diagnostics: Optional[List[Diagnostic]] = None,
    ) -> "ArrangementStatusResponse":
        return cls(
            arrangement_id=status.arrangement_id,
            total_paid=status.total_paid,
            remaining_balance=status.remaining_balance,
            paid_this_month=status.paid_this_month,
            is_overdue=status.is_overdue,
            is_overpaid=status.is_overpaid,
            progress=status.progress,
            required_monthly_payment=status.required_monthly_payment,
            suggested_overpayment=suggested_overpayment,
            diagnostics=[DiagnosticSchema.from_domain(d) for d in diagnostics or []],
        )


class DashboardResponse(BaseModel):
    """Response for POST /v1/dashboard"""

    net_worth: Decimal
    current_month_spending: Decimal
    upcoming: List[OccurrenceSchema]
    budget_progress: List[BudgetProgressSchema]
    forecasts: List[ForecastResponse]
    bnpl_plans: List[PlanScheduleResponse]
    arrangements: List[ArrangementStatusResponse]
    diagnostics: List[DiagnosticSchema] = []

    @classmethod
    def from_domain(cls, summary: DashboardSummary) -> "DashboardResponse":
        # Diagnostics are reported once for the whole dashboard
        return cls(
            net_worth=summary.net_worth,
            current_month_spending=summary.current_month_spending,
            upcoming=[OccurrenceSchema.from_domain(o) for o in summary.upcoming],
            budget_progress=[BudgetProgressSchema.from_domain(b) for b in summary.budget_progress],
            forecasts=[ForecastResponse.from_domain(f, []) for f in summary.forecasts],
            bnpl_plans=[PlanScheduleResponse.from_domain(s, []) for s in summary.bnpl_statuses],
            arrangements=[ArrangementStatusResponse.from_domain(s) for s in summary.arrangement_statuses],
            diagnostics=[DiagnosticSchema.from_domain(d) for d in summary.diagnostics],
        )


class PostedTransactionSchema(BaseModel):
    id: str
    description: str
    amount: Decimal
    date: datetime
    category_id: Optional[str] = None


class AccountSummaryResponse(BaseModel):
    """Response for POST /v1/accounts/{account_id}/summary"""

    account_id: str
    recent_transactions: List[PostedTransactionSchema]
    upcoming: List[OccurrenceSchema]
    current_month_spending: Decimal
    current_month_income: Decimal
    transaction_count: int
    outstanding_bnpl_plans: int
    next_bnpl_payment: Optional[OccurrenceSchema] = None
    diagnostics: List[DiagnosticSchema] = []

    @classmethod
    def from_domain(cls, summary: AccountSummary, diagnostics: List[Diagnostic]) -> "AccountSummaryResponse":
        return cls(
            account_id=summary.account_id,
            recent_transactions=[
                PostedTransactionSchema(
                    id=t.id, description=t.description, amount=t.amount, date=t.date, category_id=t.category_id
                )
                for t in summary.recent_transactions
            ],
            upcoming=[OccurrenceSchema.from_domain(o) for o in summary.upcoming],
            current_month_spending=summary.current_month_spending,
            current_month_income=summary.current_month_income,
            transaction_count=summary.transaction_count,
            outstanding_bnpl_plans=summary.outstanding_bnpl_plans,
            next_bnpl_payment=OccurrenceSchema.from_domain(summary.next_bnpl_payment) if summary.next_bnpl_payment else None,
            diagnostics=[DiagnosticSchema.from_domain(d) for d in diagnostics],
        )


class LedgerEntrySchema(BaseModel):
    id: str
    account_id: str
    description: str
    amount: Decimal
    date: datetime
    category_id: Optional[str] = None
    event_id: Optional[str] = None
    is_scheduled: bool = False

    @classmethod
    def from_domain(cls, transaction: Transaction) -> "LedgerEntrySchema":
        return cls(
            id=transaction.id,
            account_id=transaction.account_id,
            description=transaction.description,
            amount=transaction.amount,
            date=transaction.date,
            category_id=transaction.category_id,
            event_id=transaction.event_id,
            is_scheduled=transaction.is_scheduled,
        )


class DayGroupSchema(BaseModel):
    date: date
    transaction_ids: List[str]


class TransactionStatsSchema(BaseModel):
    total_transactions: int
    total_amount: Decimal
    income_amount: Decimal
    expense_amount: Decimal
    net_amount: Decimal
    average_transaction: Decimal

    @classmethod
    def from_domain(cls, stats: TransactionSummaryStats) -> "TransactionStatsSchema":
        return cls(
            total_transactions=stats.total_transactions,
            total_amount=stats.total_amount,
            income_amount=stats.income_amount,
            expense_amount=stats.expense_amount,
            net_amount=stats.net_amount,
            average_transaction=stats.average_transaction,
        )


class TransactionSearchResponse(BaseModel):
    """Response for POST /v1/transactions/search"""

    transactions: List[LedgerEntrySchema]
    days: List[DayGroupSchema]
    stats: TransactionStatsSchema
    has_active_filters: bool
    diagnostics: List[DiagnosticSchema] = []


class TransferTransactionsResponse(BaseModel):
    """Response for POST /v1/transfers/{transfer_id}/transactions"""

    transfer_id: str
    outflow: LedgerEntrySchema
    inflow: LedgerEntrySchema
    diagnostics: List[DiagnosticSchema] = []


class AccountGroupSchema(BaseModel):
    type: str
    display_name: str
    total_balance: Decimal
    account_ids: List[str]

    @classmethod
    def from_domain(cls, group: AccountGroup) -> "AccountGroupSchema":
        return cls(
            type=group.type.value,
            display_name=group.type.display_name,
            total_balance=group.total_balance,
            account_ids=[a.id for a in group.accounts],
        )


class AccountGroupsResponse(BaseModel):
    """Response for POST /v1/accounts/groups"""

    groups: List[AccountGroupSchema]
    total_balance: Decimal
    total_assets: Decimal
    total_liabilities: Decimal
    diagnostics: List[DiagnosticSchema] = []


class ActiveEventSchema(BaseModel):
    id: str
    name: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class ActiveEventsResponse(BaseModel):
    """Response for POST /v1/events/active"""

    events: List[ActiveEventSchema]
