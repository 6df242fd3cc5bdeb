"""
Ledger Configuration Model

The configuration singleton holds the business parameters used by the
cost engine: labor rate, monthly fixed costs and the pricing margin.

Two margin policies exist in stored data:
- multiplier: recommended price = cost per unit x multiplier
- percentage: recommended price = cost per unit x (1 + percentage / 100)

DESIGN DECISION: The margin is an explicit tagged union rather than two
optional fields. Old document shapes are migrated once, at load time, by
migrate_config(); nothing downstream branches on the stored shape.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from brewery_ledger.log import get_logger
from brewery_ledger.models.records import coerce_number


logger = get_logger(__name__)

CONFIG_SCHEMA_VERSION = 2

DEFAULT_LABOR_RATE = 150.0
DEFAULT_MARGIN_MULTIPLIER = 3.0


class MultiplierMargin(BaseModel):
    """Price as a multiple of cost."""
    model_config = ConfigDict(frozen=True)
    
    kind: Literal["multiplier"] = "multiplier"
    multiplier: float = Field(
        default=DEFAULT_MARGIN_MULTIPLIER,
        ge=0,
        description="Recommended price = cost x multiplier"
    )
    
    def apply(self, cost_per_unit: float) -> float:
        return cost_per_unit * self.multiplier
    
    def describe(self) -> str:
        return f"{self.multiplier:g}x cost"


class PercentageMargin(BaseModel):
    """Price as cost plus a percentage markup."""
    model_config = ConfigDict(frozen=True)
    
    kind: Literal["percentage"] = "percentage"
    percentage: float = Field(
        default=60.0,
        ge=0,
        description="Recommended price = cost x (1 + percentage / 100)"
    )
    
    def apply(self, cost_per_unit: float) -> float:
        return cost_per_unit * (1 + self.percentage / 100)
    
    def describe(self) -> str:
        return f"cost + {self.percentage:g}%"


MarginPolicy = Annotated[
    Union[MultiplierMargin, PercentageMargin],
    Field(discriminator="kind"),
]


class LedgerConfig(BaseModel):
    """
    Canonical configuration document (schema version 2).
    
    Created with defaults on first use, changed only through the record
    store, never deleted.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )
    
    schema_version: Literal[2] = CONFIG_SCHEMA_VERSION
    labor_rate: float = Field(
        default=DEFAULT_LABOR_RATE,
        ge=0,
        description="Cost of one labor hour"
    )
    monthly_rent: float = Field(default=0.0, ge=0)
    monthly_salaries: float = Field(default=0.0, ge=0)
    monthly_utilities: float = Field(default=0.0, ge=0)
    margin: MarginPolicy = Field(default_factory=MultiplierMargin)
    
    @field_validator(
        "labor_rate", "monthly_rent", "monthly_salaries", "monthly_utilities",
        mode="before",
    )
    @classmethod
    def numeric(cls, v: Any) -> float:
        return coerce_number(v)
    
    @property
    def monthly_fixed_costs(self) -> float:
        """Rent + salaries + utilities for one month."""
        return self.monthly_rent + self.monthly_salaries + self.monthly_utilities
    
    def recommended_price(self, cost_per_unit: float) -> float:
        return self.margin.apply(cost_per_unit)
    
    def with_changes(self, **changes: Any) -> "LedgerConfig":
        """Return a validated copy with some fields replaced."""
        data = self.model_dump()
        data.update(changes)
        return LedgerConfig.model_validate(data)
    
    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# =============================================================================
# MIGRATION
# =============================================================================

_LEGACY_FIELDS = {
    "laborRate": "labor_rate",
    "monthlyRent": "monthly_rent",
    "monthlySalaries": "monthly_salaries",
    "monthlyUtilities": "monthly_utilities",
}


def _legacy_margin(flat: dict) -> Union[MultiplierMargin, PercentageMargin]:
    if flat.get("profitMarginMultiplier") is not None:
        return MultiplierMargin(
            multiplier=coerce_number(flat["profitMarginMultiplier"])
        )
    if flat.get("profitMarginPercentage") is not None:
        return PercentageMargin(
            percentage=coerce_number(flat["profitMarginPercentage"])
        )
    return MultiplierMargin()


def migrate_config(raw: Optional[Any]) -> LedgerConfig:
    """
    Convert any stored configuration shape into a LedgerConfig.
    
    Handles:
    - schema version 2 documents (validated as-is)
    - the nested shape {fixedCosts: {laborRate, monthlyRent, ...},
      profitMarginMultiplier}
    - the flat shape {laborRate, profitMarginPercentage, version: "1.0"}
      with optional flattened monthly fields
    
    Anything unusable falls back to defaults with a warning.
    """
    if raw is None:
        return LedgerConfig()
    if not isinstance(raw, dict):
        logger.warning("config_not_an_object", value_type=type(raw).__name__)
        return LedgerConfig()
    
    try:
        if raw.get("schemaVersion") == CONFIG_SCHEMA_VERSION:
            return LedgerConfig.model_validate(raw)
        
        flat = dict(raw)
        nested = raw.get("fixedCosts")
        if isinstance(nested, dict):
            flat.update(nested)
        
        values: dict[str, Any] = {
            field: flat[key]
            for key, field in _LEGACY_FIELDS.items()
            if flat.get(key) is not None
        }
        values["margin"] = _legacy_margin(flat)
        config = LedgerConfig(**values)
        logger.info(
            "config_migrated",
            from_version=str(raw.get("version", "unversioned")),
            margin=config.margin.kind,
        )
        return config
    except ValidationError as e:
        logger.warning("config_invalid_using_defaults", error=str(e))
        return LedgerConfig()
