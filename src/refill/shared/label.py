"""LabelToken value object — the text encoded on a cylinder's QR tag."""

from protean.exceptions import ValidationError
from protean.fields import String

from refill.domain import refill


@refill.value_object
class LabelToken:
    """Trimmed, upper-cased label token. Comparison is case-insensitive."""

    value: String(required=True, max_length=100)

    @classmethod
    def create(cls, raw: str | None) -> "LabelToken":
        if raw is None or not raw.strip():
            raise ValidationError({"label_token": ["Label token cannot be empty"]})
        return cls(value=raw.strip().upper())

    def __str__(self) -> str:
        return self.value
