"""Pytest configuration and shared fixtures."""

from datetime import date
from decimal import Decimal

import pytest

from revrec_engine.allocation.allocator import ObligationAllocator
from revrec_engine.models.contract import (
    ConsiderationType,
    Contract,
    ObligationCandidate,
    SatisfactionMethod,
    VariableConsiderationElement,
)
from revrec_engine.schedule.generator import ScheduleGenerator
from revrec_engine.utils.money import MoneyContext


@pytest.fixture
def money() -> MoneyContext:
    """Two-decimal, half-even money context."""
    return MoneyContext()


@pytest.fixture
def sample_contract() -> Contract:
    """One-year bundle contract starting mid-month."""
    return Contract(
        id="C-1001",
        name="Bundle",
        value=Decimal("10000.00"),
        start_date=date(2024, 1, 15),
        end_date=date(2025, 1, 15),
    )


@pytest.fixture
def sample_candidates() -> list[ObligationCandidate]:
    """License delivered up front plus a year of support."""
    return [
        ObligationCandidate(
            description="Software license",
            standalone_selling_price=Decimal("6000.00"),
            satisfaction_method=SatisfactionMethod.POINT_IN_TIME,
        ),
        ObligationCandidate(
            description="Support",
            standalone_selling_price=Decimal("4000.00"),
            satisfaction_method=SatisfactionMethod.OVER_TIME,
        ),
    ]


@pytest.fixture
def sample_bonus() -> VariableConsiderationElement:
    """2000.00 performance bonus, 50% likely."""
    return VariableConsiderationElement(
        type=ConsiderationType.BONUS,
        amount=Decimal("2000.00"),
        constraint_factor=Decimal("0.5"),
        rationale="Go-live bonus",
    )


@pytest.fixture
def allocated_bundle(sample_contract, sample_candidates, money):
    """Allocations of the sample contract at its base value."""
    allocator = ObligationAllocator(money)
    return allocator.allocate(sample_contract, sample_contract.value, sample_candidates)


@pytest.fixture
def bundle_entries(allocated_bundle, money):
    """Full schedule for the sample contract."""
    return ScheduleGenerator(money).generate_for_contract(allocated_bundle)
