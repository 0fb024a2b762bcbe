"""
Transaction price resolution.

Combines the fixed contract value with variable consideration. Each element
is constrained by its probability factor, signed by its type and summed into
the price; the total is rounded once to the minimal unit.
"""

from dataclasses import dataclass
from decimal import Decimal
from fractions import Fraction
from typing import Optional, Sequence

import structlog

from ..config.defaults import MoneyParams, PricingParams
from ..errors import InvalidPriceError, MalformedInputError
from ..logging.config import get_allocation_logger
from ..models.contract import ConsiderationType, VariableConsiderationElement
from ..utils.money import MoneyContext, to_fraction

logger = structlog.get_logger(__name__)
allocation_logger = get_allocation_logger(__name__)

# Direction in which each kind of consideration moves the price
CONSIDERATION_SIGNS = {
    ConsiderationType.BONUS: 1,
    ConsiderationType.USAGE_BASED: 1,
    ConsiderationType.NON_CASH: 1,
    ConsiderationType.FINANCING: 1,
    ConsiderationType.OTHER: 1,
    ConsiderationType.PENALTY: -1,
    ConsiderationType.REBATE: -1,
    ConsiderationType.REFUND: -1,
}


@dataclass(frozen=True)
class PriceComponent:
    """Contribution of one variable consideration element to the price."""
    element: VariableConsiderationElement
    constrained_amount: Decimal
    signed_amount: Decimal
    flagged_for_disclosure: bool = False


@dataclass(frozen=True)
class PriceResolution:
    """Result of resolving a transaction price."""
    base_value: Decimal
    transaction_price: Decimal
    components: tuple[PriceComponent, ...] = ()

    @property
    def disclosures(self) -> tuple[PriceComponent, ...]:
        """Components included in the price but flagged for disclosure."""
        return tuple(c for c in self.components if c.flagged_for_disclosure)

    @property
    def variable_total(self) -> Decimal:
        return self.transaction_price - self.base_value


class TransactionPriceResolver:
    """Resolves base value plus variable consideration into a transaction price."""

    def __init__(
        self,
        money: Optional[MoneyContext] = None,
        pricing: Optional[PricingParams] = None
    ) -> None:
        self.money = money or MoneyContext.from_params(MoneyParams())
        self.pricing = pricing or PricingParams()
        self.logger = logger

    def resolve(
        self,
        base_value: Decimal,
        elements: Sequence[VariableConsiderationElement] = (),
        contract_id: Optional[str] = None
    ) -> PriceResolution:
        """
        Resolve the transaction price.

        Args:
            base_value: Fixed consideration from the contract
            elements: Variable consideration in the order supplied
            contract_id: Used for logging only

        Returns:
            PriceResolution with the rounded, non-negative transaction price

        Raises:
            MalformedInputError: constraint factor outside [0, 1]
            InvalidPriceError: resolved price would be negative
        """
        price = to_fraction(base_value)
        components = []

        for element in elements:
            constrained = self._constrain(element)
            sign = CONSIDERATION_SIGNS[ConsiderationType(element.type)]
            signed = constrained * sign
            price += signed

            flagged = ConsiderationType(element.type).value in self.pricing.disclosure_types
            components.append(PriceComponent(
                element=element,
                constrained_amount=self.money.quantize(constrained),
                signed_amount=self.money.quantize(signed),
                flagged_for_disclosure=flagged
            ))

            self.logger.debug(
                "Applied variable consideration",
                contract_id=contract_id,
                consideration_type=ConsiderationType(element.type).value,
                amount=str(element.amount),
                constraint_factor=str(element.constraint_factor) if element.constraint_factor is not None else None,
                signed_amount=str(self.money.quantize(signed)),
                flagged_for_disclosure=flagged
            )

        if price < 0:
            raise InvalidPriceError(
                f"Resolved transaction price {self.money.quantize(price)} is negative",
                price=self.money.quantize(price),
                clamped_price=self.money.zero,
                context={
                    "contract_id": contract_id,
                    "base_value": str(base_value),
                    "element_count": len(components)
                }
            )

        resolution = PriceResolution(
            base_value=self.money.quantize(base_value),
            transaction_price=self.money.quantize(price),
            components=tuple(components)
        )

        allocation_logger.info(
            "Transaction price resolved",
            contract_id=contract_id,
            base_value=str(resolution.base_value),
            transaction_price=str(resolution.transaction_price),
            variable_elements=len(components),
            disclosures=len(resolution.disclosures),
            event_type="price_resolved"
        )

        return resolution

    def _constrain(self, element: VariableConsiderationElement) -> Fraction:
        """Apply the constraint factor, if any, to an element's amount."""
        amount = to_fraction(element.amount)
        factor = element.constraint_factor

        if factor is None:
            return amount

        if factor < 0 or factor > 1:
            raise MalformedInputError(
                f"Constraint factor must be within [0, 1], got {factor}",
                raw_data=str(factor),
                expected_format="decimal in [0, 1]",
                context={"consideration_type": ConsiderationType(element.type).value}
            )

        return self.money.multiply(amount, factor)
