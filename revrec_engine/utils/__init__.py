"""
Utility functions module.

Money and calendar primitives shared by every engine stage.

Arithmetic Semantics:
- Amounts are Decimals rounded to a fixed minimal unit
- Intermediate values are exact Fractions; rounding happens once, at the end
- Months are calendar months, never 30-day approximations
- Periods are half-open [start, end)
"""
