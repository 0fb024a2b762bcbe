#!/usr/bin/env python3
"""
Basic Usage Example - Revenue Recognition Engine

This script demonstrates the basic usage of the revenue recognition engine
with a software bundle contract. It shows how to:
- Register a contract and its variable consideration
- Supply obligation candidates through a suggester
- Run the pipeline and inspect allocations and schedules
- Recognize, adjust and reverse revenue and print the summary

Run: python examples/basic_usage.py
"""

import json
from datetime import date
from decimal import Decimal

from revrec_engine.engine import RevenueRecognitionEngine
from revrec_engine.logging import configure_logging
from revrec_engine.models import (
    ConsiderationType,
    Contract,
    ObligationCandidate,
    SatisfactionMethod,
    VariableConsiderationElement,
)
from revrec_engine.persistence import InMemoryContractRepository
from revrec_engine.suggesters import StaticObligationSuggester


def create_bundle_contract() -> Contract:
    """Create a sample one-year software bundle contract."""
    return Contract(
        id="DEMO-BUNDLE",
        name="Software license with support and training",
        value=Decimal("10000.00"),
        start_date=date(2024, 1, 15),
        end_date=date(2025, 1, 15)
    )


def create_candidates() -> list:
    """Obligations as a sales operations analyst would enter them."""
    return [
        ObligationCandidate(
            description="Software license",
            standalone_selling_price=Decimal("6000.00"),
            satisfaction_method=SatisfactionMethod.POINT_IN_TIME
        ),
        ObligationCandidate(
            description="Support and maintenance",
            standalone_selling_price=Decimal("3000.00"),
            satisfaction_method=SatisfactionMethod.OVER_TIME
        ),
        ObligationCandidate(
            description="Onboarding training",
            standalone_selling_price=Decimal("1500.00"),
            satisfaction_method=SatisfactionMethod.OVER_TIME,
            start_date=date(2024, 1, 15),
            end_date=date(2024, 4, 15)
        ),
    ]


def main():
    """Run the basic usage example."""
    configure_logging(level="WARNING")

    print("📄 Revenue Recognition Engine - Basic Usage")
    print("=" * 50)

    contract = create_bundle_contract()
    repository = InMemoryContractRepository(
        contracts=[contract],
        variable_consideration={
            contract.id: [
                VariableConsiderationElement(
                    type=ConsiderationType.BONUS,
                    amount=Decimal("2000.00"),
                    constraint_factor=Decimal("0.5"),
                    rationale="Go-live bonus, 50% likely"
                )
            ]
        }
    )
    suggester = StaticObligationSuggester(candidates={contract.id: create_candidates()})
    engine = RevenueRecognitionEngine(repository, suggester=suggester)

    result = engine.process_contract(contract.id)
    print(f"\n💰 Transaction price: {result.transaction_price}")

    print("\n📊 Allocations:")
    for allocated in result.allocations:
        print(f"  • {allocated.obligation.description}: {allocated.allocated_amount} "
              f"({allocated.allocation_percentage}%)")

    print(f"\n🗓️  Schedule ({len(result.entries)} entries), first six:")
    for entry in result.entries[:6]:
        print(f"  {entry.recognition_date}  {entry.entry_id:<24} {entry.amount:>10}")

    recognized = engine.recognize_due(contract.id, as_of=date(2024, 3, 31))
    print(f"\n✅ Recognized {len(recognized)} entries through 2024-03-31")

    first = recognized[0]
    engine.adjust(contract.id, first.entry_id, Decimal("-100.00"), "Price concession", as_of=date(2024, 4, 2))
    print(f"🔧 Adjusted {first.entry_id} by -100.00")

    summary = engine.get_summary(contract.id)
    print("\n📈 Summary:")
    print(json.dumps(summary.to_dict(), indent=2))


if __name__ == "__main__":
    main()
