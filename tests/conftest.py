"""Pytest fixtures for testing"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from typing import Callable
from fastapi.testclient import TestClient
from pennypath_engine.api.main import create_app
from pennypath_engine.api.dependencies import get_clock
from pennypath_engine.domain.models import (
    Account,
    AccountType,
    ArrangementType,
    BNPLPlan,
    Budget,
    Category,
    FlexibleArrangement,
    PaymentFrequency,
    Transaction,
    Transfer,
)


# Reference time shared by every test (a Monday, mid-month)
NOW = datetime(2025, 6, 16, 12, 0)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def client() -> TestClient:
    """Create FastAPI test client with a frozen clock"""
    app = create_app()
    app.dependency_overrides[get_clock] = lambda: (lambda: NOW)
    return TestClient(app)


@pytest.fixture
def make_account() -> Callable[..., Account]:
    def factory(account_id: str = "acc-current", type: AccountType = AccountType.CURRENT, balance: str = "0.00", **kwargs):
        return Account(id=account_id, user_id="user-1", name=account_id, type=type, balance=Decimal(balance), **kwargs)

    return factory


@pytest.fixture
def make_transaction() -> Callable[..., Transaction]:
    """Posted by default; pass ``is_scheduled=True`` for a pending one"""
    counter = {"n": 0}

    def factory(amount: str, when: datetime, account_id: str = "acc-current", txn_id: str = None, **kwargs):
        counter["n"] += 1
        return Transaction(
            id=txn_id or f"txn-{counter['n']}",
            user_id="user-1",
            account_id=account_id,
            amount=Decimal(amount),
            description=kwargs.pop("description", "Transaction"),
            date=when,
            **kwargs,
        )

    return factory


@pytest.fixture
def make_plan() -> Callable[..., BNPLPlan]:
    def factory(
        total: str = "249.95",
        installments: int = 4,
        start: date = date(2025, 6, 1),
        frequency: PaymentFrequency = PaymentFrequency.BIWEEKLY,
        plan_id: str = "plan-1",
        account_id: str = "acc-bnpl",
        **kwargs,
    ):
        return BNPLPlan(
            id=plan_id,
            user_id="user-1",
            account_id=account_id,
            provider_name="Klarna",
            total_amount=Decimal(total),
            number_of_installments=installments,
            start_date=start,
            frequency=frequency,
            **kwargs,
        )

    return factory


@pytest.fixture
def make_arrangement() -> Callable[..., FlexibleArrangement]:
    def factory(
        original: str = "1200.00",
        minimum: str = "25.00",
        arrangement_id: str = "arr-1",
        account_id: str = "acc-family",
        **kwargs,
    ):
        return FlexibleArrangement(
            id=arrangement_id,
            user_id="user-1",
            account_id=account_id,
            type=kwargs.pop("type", ArrangementType.FAMILY_FRIEND_LOAN),
            original_amount=Decimal(original),
            start_date=kwargs.pop("start_date", date(2025, 1, 1)),
            minimum_payment=Decimal(minimum) if minimum is not None else None,
            **kwargs,
        )

    return factory


@pytest.fixture
def food_category() -> Category:
    return Category(id="cat-food", user_id="user-1", name="Food", color="#ff8800", icon="cart")


@pytest.fixture
def make_budget() -> Callable[..., Budget]:
    def factory(amount: str = "400.00", budget_id: str = "budget-1", category_id: str = "cat-food", month: int = 6, year: int = 2025, **kwargs):
        return Budget(
            id=budget_id,
            user_id="user-1",
            category_id=category_id,
            amount=Decimal(amount),
            month=month,
            year=year,
            **kwargs,
        )

    return factory


@pytest.fixture
def make_transfer() -> Callable[..., Transfer]:
    def factory(amount: str, when: datetime, from_account: str = "acc-current", to_account: str = "acc-savings", **kwargs):
        return Transfer(
            id=kwargs.pop("transfer_id", "tr-1"),
            user_id="user-1",
            from_account_id=from_account,
            to_account_id=to_account,
            amount=Decimal(amount),
            description=kwargs.pop("description", "Savings"),
            date=when,
            **kwargs,
        )

    return factory
