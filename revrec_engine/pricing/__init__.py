"""Transaction price resolution (step 3 of the recognition model)"""

from .resolver import PriceComponent, PriceResolution, TransactionPriceResolver

__all__ = [
    "PriceComponent",
    "PriceResolution",
    "TransactionPriceResolver",
]
