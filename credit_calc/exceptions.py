"""Errors raised by the calculation engines.

Every error derives from ``ValueError`` so callers that already treat bad
input as a ``ValueError`` keep working.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional


class CalculationError(ValueError):
    """Base class for errors raised while building a schedule."""


class InvalidConfiguration(CalculationError):
    """The input names a method, formula or mode the engine does not know."""


class InsufficientPayment(CalculationError):
    """A base payment does not cover the interest accrued in ``month``.

    This points at a misconfigured growth rate or initial payment per
    thousand rather than at a recoverable condition.
    """

    def __init__(
        self,
        month: int,
        base_payment: Optional[Decimal] = None,
        interest: Optional[Decimal] = None,
    ) -> None:
        message = (
            f"Base payment too small at month {month}. Increase the initial "
            "payment per thousand or the growth/base settings."
        )
        if base_payment is not None and interest is not None:
            message += f" (payment {base_payment:.2f} < interest {interest:.2f})"
        super().__init__(message)
        self.month = month
        self.base_payment = base_payment
        self.interest = interest
