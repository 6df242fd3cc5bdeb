"""
Ledger Record Models

The three keyed collections of the ledger: production batches, cash
transactions and sales. Each record is an immutable pydantic model that
serializes to the camelCase JSON shape stored in the documents.

DESIGN DECISION: Records loaded from storage are validated leniently.
A report over hundreds of rows should not crash because one amount was
typed as "n/a":
- Non-numeric amounts become 0
- Unparseable dates are kept as text and simply never match a period
- Unparseable creation timestamps become None
Structural problems (missing id, negative volume, unknown kind) still
fail validation; the snapshot loader skips those records with a warning.
"""

import math
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel

from brewery_ledger.log import get_logger


logger = get_logger(__name__)


# =============================================================================
# COERCION HELPERS
# =============================================================================

def new_record_id() -> str:
    """Generate an opaque record id."""
    return str(uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def coerce_number(value: Any) -> float:
    """
    Coerce a stored amount to a float.
    
    None, booleans, non-numeric text, NaN and infinities all become 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning("non_numeric_amount_coerced", value=repr(value))
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a record date.
    
    Accepts date/datetime objects, ISO dates ("2024-03-05") and ISO
    timestamps ("2024-03-05T10:00:00Z"). Returns None for anything else.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a creation timestamp into an aware UTC datetime.
    
    Naive values are assumed to be UTC. Unparseable values give None.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# =============================================================================
# ENUMS
# =============================================================================

class TransactionKind(str, Enum):
    """Direction of a cash transaction. Amounts are always stored unsigned."""
    INCOME = "income"
    EXPENSE = "expense"


# =============================================================================
# RECORD MODELS
# =============================================================================

class LedgerRecord(BaseModel):
    """
    Fields shared by every keyed record.
    
    `id` and `created_at` are assigned once at insert and never change.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )
    
    id: str = Field(
        default_factory=new_record_id,
        min_length=1,
        description="Opaque unique record id"
    )
    # ISO-8601 text; kept verbatim even when it does not parse
    date: str
    created_at: Optional[datetime] = Field(
        default_factory=utc_now,
        description="When the record was created (UTC)"
    )
    
    @field_validator("id", mode="before")
    @classmethod
    def id_to_text(cls, v: Any) -> Any:
        """Numeric ids from older exports are kept as text."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v
    
    @field_validator("date", mode="before")
    @classmethod
    def date_to_text(cls, v: Any) -> str:
        if isinstance(v, datetime):
            return v.date().isoformat()
        if isinstance(v, date):
            return v.isoformat()
        if v is None:
            return ""
        return str(v)
    
    @field_validator("created_at", mode="before")
    @classmethod
    def lenient_timestamp(cls, v: Any) -> Optional[datetime]:
        return parse_timestamp(v)
    
    @property
    def record_date(self) -> Optional[date]:
        """The parsed record date, or None if it is malformed."""
        return parse_date(self.date)
    
    def with_changes(self, **changes: Any) -> "LedgerRecord":
        """
        Return a validated copy with some fields replaced.
        
        Identity fields (id, created_at) cannot be changed.
        """
        forbidden = {"id", "created_at"} & set(changes)
        if forbidden:
            raise ValueError(f"Cannot change immutable fields: {sorted(forbidden)}")
        data = self.model_dump()
        data.update(changes)
        return type(self).model_validate(data)
    
    def to_document(self) -> dict:
        """Serialize to the stored JSON shape (camelCase keys)."""
        return self.model_dump(by_alias=True, mode="json")


class ProductionBatch(LedgerRecord):
    """
    One brewing batch.
    
    A batch with zero volume still carries its costs but adds nothing
    to the allocation base.
    """
    product_name: str = Field(
        default="",
        validation_alias=AliasChoices("productName", "beerName", "product_name"),
        serialization_alias="productName",
        description="Product brewed (exact-match grouping key)"
    )
    volume_produced: float = Field(
        default=0.0,
        ge=0,
        validation_alias=AliasChoices("volumeProduced", "volume", "volume_produced"),
        serialization_alias="volumeProduced",
        description="Units produced (e.g. pints)"
    )
    labor_hours: float = Field(
        default=0.0,
        ge=0,
        description="Direct labor hours spent on the batch"
    )
    ingredient_cost: float = Field(
        default=0.0,
        ge=0,
        description="Ingredients and packaging cost"
    )
    
    @field_validator("product_name", mode="before")
    @classmethod
    def text_or_empty(cls, v: Any) -> str:
        return "" if v is None else str(v)
    
    @field_validator("volume_produced", "labor_hours", "ingredient_cost", mode="before")
    @classmethod
    def numeric(cls, v: Any) -> float:
        return coerce_number(v)


class LedgerTransaction(LedgerRecord):
    """A cash movement. The sign comes from `kind`, never from `amount`."""
    description: str = ""
    amount: float = Field(
        default=0.0,
        ge=0,
        description="Unsigned amount"
    )
    kind: TransactionKind = Field(
        validation_alias=AliasChoices("kind", "type"),
        serialization_alias="kind",
    )
    category: str = Field(
        default="other",
        description="Free-form category tag"
    )
    
    @field_validator("description", mode="before")
    @classmethod
    def text_or_empty(cls, v: Any) -> str:
        return "" if v is None else str(v)
    
    @field_validator("category", mode="before")
    @classmethod
    def category_or_other(cls, v: Any) -> str:
        if v is None or (isinstance(v, str) and not v.strip()):
            return "other"
        return str(v)
    
    @field_validator("amount", mode="before")
    @classmethod
    def numeric(cls, v: Any) -> float:
        return coerce_number(v)
    
    @property
    def signed_amount(self) -> float:
        return self.amount if self.kind == TransactionKind.INCOME else -self.amount


class SaleRecord(LedgerRecord):
    """Sales booked for a day (or any period the user records)."""
    revenue: float = Field(
        default=0.0,
        description="Revenue from the sale"
    )
    volume_sold: float = Field(
        default=0.0,
        ge=0,
        description="Units sold"
    )
    
    @field_validator("revenue", "volume_sold", mode="before")
    @classmethod
    def numeric(cls, v: Any) -> float:
        return coerce_number(v)
    
    @property
    def average_price(self) -> float:
        """Revenue per unit, 0 when nothing was sold."""
        if self.volume_sold > 0:
            return self.revenue / self.volume_sold
        return 0.0
