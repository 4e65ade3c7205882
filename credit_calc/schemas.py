"""Request validation for raw calculator input.

The engines trust their input records. These pydantic models sit at the edge
(the web API and JSON files fed to the CLI), enforce field bounds and enum
membership, and convert the payload into the engine dataclasses.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .data_models import (
    CostSettings,
    GrowthSettings,
    InsuranceSettings,
    InterestBand,
    MortgageInput,
    Prepayment,
    RevolvingInput,
)
from .utils import parse_year_month

InterestMethod = Literal["average_daily_balance", "simple_monthly_apr", "daily_compounding"]
MinPaymentFormula = Literal["percent_only", "percent_plus_interest_and_fees"]
ProductType = Literal[
    "hipoteca_fija",
    "hipoteca_creciente",
    "muda",
    "remodela",
    "tu_opcion_mexico",
    "terreno",
    "liquidez",
]


class RevolvingInputSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    principal: Decimal = Field(ge=0)
    apr: Decimal = Field(ge=0, le=2)
    cycle_days: int = Field(ge=1, le=366)
    min_payment_percent: Decimal = Field(ge=0, le=Decimal("0.5"))
    min_payment_floor: Optional[Decimal] = Field(default=None, ge=0)
    fees_per_cycle: Decimal = Field(default=Decimal("0"), ge=0)
    new_charges_per_cycle: Decimal = Field(default=Decimal("0"), ge=0)
    interest_method: InterestMethod
    min_payment_formula: MinPaymentFormula
    target_months: Optional[int] = Field(default=None, ge=1, le=600)
    locale: Optional[str] = None
    currency: Optional[str] = None

    def to_input(self) -> RevolvingInput:
        return RevolvingInput(**self.model_dump())


class InterestBandSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    from_month: int = Field(ge=1)
    to_month: Optional[int] = Field(default=None, ge=1)
    annual_rate: Decimal = Field(ge=0, le=1)

    @model_validator(mode="after")
    def ensure_range(self) -> "InterestBandSchema":
        if self.to_month is not None and self.to_month < self.from_month:
            raise ValueError("to_month must not be before from_month")
        return self


class GrowthSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    annual_increase_pct: Decimal = Field(default=Decimal("0"), ge=0, le=Decimal("0.5"))
    increase_end_year: int = Field(default=0, ge=0, le=40)
    initial_payment_per_thousand: Optional[Decimal] = Field(default=None, ge=0)


class CostsSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    opening_commission_pct: Decimal = Field(default=Decimal("0"), ge=0, le=Decimal("0.2"))
    admin_deferred_monthly_pct: Decimal = Field(default=Decimal("0"), ge=0, le=Decimal("0.01"))
    appraisal_cost: Decimal = Field(default=Decimal("0"), ge=0)
    notary_cost: Decimal = Field(default=Decimal("0"), ge=0)
    preorigination_cost: Decimal = Field(default=Decimal("0"), ge=0)


class InsuranceSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    life_annual_rate_on_balance: Decimal = Field(default=Decimal("0"), ge=0, le=Decimal("0.1"))
    hazard_annual_rate_on_insured_value: Decimal = Field(default=Decimal("0"), ge=0, le=Decimal("0.1"))
    insured_value_factor: Decimal = Field(default=Decimal("1"), ge=0, le=Decimal("1.2"))
    reindex_insured_value_annual_pct: Decimal = Field(default=Decimal("0"), ge=0, le=Decimal("0.2"))


class PrepaymentSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    month: int = Field(ge=1)
    amount: Decimal = Field(ge=0)


class MortgageInputSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    product: ProductType
    property_value: Decimal = Field(gt=0)
    ltv: Decimal = Field(ge=0, le=1)
    principal: Optional[Decimal] = Field(default=None, ge=1)
    term_months: int = Field(ge=12, le=480)
    bands: List[InterestBandSchema] = Field(min_length=1)
    growth: Optional[GrowthSchema] = None
    costs: CostsSchema = Field(default_factory=CostsSchema)
    insurance: InsuranceSchema = Field(default_factory=InsuranceSchema)
    prepayments: List[PrepaymentSchema] = Field(default_factory=list)
    prepayment_mode: Literal["reduce_term", "reduce_installment"] = "reduce_term"
    rounding_mode: Optional[Literal["round", "floor", "ceil"]] = None
    start_date: Optional[str] = None

    @model_validator(mode="after")
    def ensure_prepayments_within_term(self) -> "MortgageInputSchema":
        if self.start_date is not None:
            parse_year_month(self.start_date)
        late = [p.month for p in self.prepayments if p.month > self.term_months]
        if late:
            raise ValueError(f"prepayment months {late} fall after the last month of the term")
        return self

    def to_input(self) -> MortgageInput:
        return MortgageInput(
            product=self.product,
            property_value=self.property_value,
            ltv=self.ltv,
            principal=self.principal,
            term_months=self.term_months,
            bands=[InterestBand(**band.model_dump()) for band in self.bands],
            growth=GrowthSettings(**self.growth.model_dump()) if self.growth else None,
            costs=CostSettings(**self.costs.model_dump()),
            insurance=InsuranceSettings(**self.insurance.model_dump()),
            prepayments=[Prepayment(**p.model_dump()) for p in self.prepayments],
            prepayment_mode=self.prepayment_mode,
            rounding_mode=self.rounding_mode,
            start_date=parse_year_month(self.start_date) if self.start_date else None,
        )


class RevolvingRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    input: RevolvingInputSchema
    name: Optional[str] = None
    preset_id: Optional[str] = None
    save: bool = False


class MortgageRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    input: MortgageInputSchema
    name: Optional[str] = None
    preset_id: Optional[str] = None
    save: bool = False
