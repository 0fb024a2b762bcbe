"""Transaction price allocation (step 4 of the recognition model)"""

from .allocator import ObligationAllocator, obligation_id_for

__all__ = ["ObligationAllocator", "obligation_id_for"]
