from decimal import Decimal, InvalidOperation
from typing import Optional

from ..exceptions import ValidationError
from ..models import Unit


def require_text(value: Optional[str], field: str, max_length: int) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} is required", field=field)
    if len(text) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters", field=field)
    return text


def optional_text(value: Optional[str], field: str, max_length: int) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return require_text(value, field, max_length)


def parse_unit(value) -> Unit:
    if isinstance(value, Unit):
        return value
    raw = (value or "").strip().upper() if isinstance(value, str) else ""
    try:
        return Unit(raw)
    except ValueError:
        allowed = ", ".join(u.value for u in Unit)
        raise ValidationError(f"unit must be one of {allowed}", field="unit") from None


# matches NUMERIC(14, 3) on every quantity column
QTY_PLACES = 3
QTY_LIMIT = Decimal("1e11")


def to_quantity(value, field: str, allow_negative: bool = True) -> Decimal:
    """
    Coerce int/str/Decimal to a finite Decimal that the quantity columns store
    exactly: at most three decimal places and less than 1e11 in magnitude.
    Floats go through str() to avoid binary noise.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number", field=field)
    try:
        qty = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", field=field) from None
    if not qty.is_finite():
        raise ValidationError(f"{field} must be finite", field=field)
    if abs(qty) >= QTY_LIMIT:
        raise ValidationError(f"{field} must be less than {QTY_LIMIT:f} in magnitude", field=field)
    if qty != qty.quantize(Decimal(1).scaleb(-QTY_PLACES)):
        raise ValidationError(f"{field} allows at most {QTY_PLACES} decimal places", field=field)
    if not allow_negative and qty < 0:
        raise ValidationError(f"{field} must not be negative", field=field)
    return qty


def optional_quantity(value, field: str) -> Optional[Decimal]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return to_quantity(value, field, allow_negative=False)
