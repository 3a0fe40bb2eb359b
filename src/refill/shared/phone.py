"""PhoneNumber value object for normalized customer phone numbers."""

import re

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String

from refill.domain import refill

MIN_DIGITS = 9


@refill.value_object
class PhoneNumber:
    """Digits-only phone number.

    Spaces, dashes, parentheses and any other non-digit characters are
    stripped on creation, so "926 060 863" and "926060863" are equal.
    """

    number: String(required=True, max_length=20)

    @classmethod
    def create(cls, raw: str | None) -> "PhoneNumber":
        if raw is None or not raw.strip():
            raise ValidationError({"phone": ["Phone number cannot be empty"]})

        digits = re.sub(r"\D", "", raw)
        if len(digits) < MIN_DIGITS:
            raise ValidationError({"phone": ["Phone number is too short"]})

        return cls(number=digits)

    @invariant.post
    def validate_digits_only(self):
        if not self.number.isdigit():
            raise ValueError(f"Invalid phone number: {self.number!r}")

    def __str__(self) -> str:
        return self.number
