import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


def coerce_money(v: Any) -> Decimal:
    """Absent, blank or unparseable amounts count as zero so totals never go NaN."""
    if v is None or isinstance(v, bool):
        return Decimal(0)
    if isinstance(v, Decimal):
        return v if v.is_finite() else Decimal(0)
    if isinstance(v, int):
        return Decimal(v)
    if isinstance(v, float):
        return Decimal(str(v)) if math.isfinite(v) else Decimal(0)
    if isinstance(v, str):
        s = v.strip().replace(",", "")
        if not s:
            return Decimal(0)
        try:
            d = Decimal(s)
        except InvalidOperation:
            return Decimal(0)
        return d if d.is_finite() else Decimal(0)
    return Decimal(0)


def to_paise(v: Any) -> Decimal:
    return coerce_money(v).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def coerce_room_count(v: Any) -> int:
    """Blank or unparseable counts fall back to a single room."""
    n = coerce_money(v)
    return int(n) if n >= 1 else 1


def coerce_text(v: Any) -> str:
    if v is None:
        return ""
    return str(v)


Money = Annotated[Decimal, BeforeValidator(coerce_money)]
Text = Annotated[str, BeforeValidator(coerce_text)]
RoomCount = Annotated[int, BeforeValidator(coerce_room_count)]


class DomainModel(BaseModel):
    """Immutable value with camelCase aliases; edits go through model_copy()."""
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
        extra="ignore",
    )

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ApiModel(BaseModel):
    """Mutable request/response body with camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)
