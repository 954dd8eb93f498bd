"""
Data model for the ration audit engine.

Every entity is a frozen dataclass created fresh for one audit run:
- Inputs: AnimalProfile, MilkProductionRecord, FeedDefinition, FeedInput
- Audit steps: CalculationStep
- Calculator outputs: NutrientRequirement, RequirementSet, VOCResult,
  FeedContribution, SupplyTotals, NutrientBalance
- Run envelope: AuditableCalculationInputs, RationSummary,
  AuditableCalculationResult
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

FEED_BASIS_DRY_MATTER = "per kg DS"
FEED_BASIS_PRODUCT = "per kg product"
FEED_BASES = (FEED_BASIS_DRY_MATTER, FEED_BASIS_PRODUCT)

STATUS_OK = "ok"
STATUS_WARNING = "warning"
STATUS_DEFICIENT = "deficient"
STATUS_EXCEEDED = "exceeded"


# ===================================================================
# INPUTS
# ===================================================================

@dataclass(frozen=True)
class MilkProductionRecord:
    kg_per_day: float
    fat_percent: float
    protein_percent: float


@dataclass(frozen=True)
class AnimalProfile:
    """
    Physiological state of one animal (or a representative group animal).

    `is_lactating` is derived from days in milk when left unset.
    `target_vem`/`target_dve` are static fallback requirements used when no
    milk basis can be resolved. `default_milk` is the explicit default
    milk/fat/protein triple for the profile.
    """
    name: str
    weight_kg: float
    parity: int
    days_in_milk: int
    days_pregnant: int = 0
    is_lactating: Optional[bool] = None
    target_vem: Optional[float] = None
    target_dve: Optional[float] = None
    uses_dynamic_requirements: bool = False
    default_milk: Optional[MilkProductionRecord] = None

    @property
    def lactating(self):
        if self.is_lactating is None:
            return self.days_in_milk > 0
        return self.is_lactating


@dataclass(frozen=True)
class FeedDefinition:
    """Nutritional values of one feedstuff, expressed on `basis`."""
    name: str
    vem: Optional[float]
    dve: Optional[float]
    oeb: Optional[float]
    basis: str = FEED_BASIS_DRY_MATTER
    default_ds_percent: float = 100.0
    sw: Optional[float] = None
    vw: Optional[float] = None
    display_name: Optional[str] = None
    category: str = "concentrate"

    @property
    def label(self):
        return self.display_name or self.name


@dataclass(frozen=True)
class FeedInput:
    amount_kg: float
    ds_percent: Optional[float] = None


# ===================================================================
# AUDIT STEPS
# ===================================================================

@dataclass(frozen=True)
class CalculationStep:
    """One auditable number: the formula, its inputs and where it comes from."""
    name: str
    formula: str
    inputs: Dict[str, object]
    calculation: str
    result: float
    unit: str
    source: str = ""


# ===================================================================
# CALCULATOR OUTPUTS
# ===================================================================

@dataclass(frozen=True)
class NutrientRequirement:
    nutrient: str
    unit: str
    strategy: str
    maintenance: CalculationStep
    production: CalculationStep
    pregnancy: CalculationStep
    growth: CalculationStep
    grazing: CalculationStep
    total: CalculationStep

    @property
    def value(self):
        return self.total.result

    @property
    def steps(self):
        return (self.maintenance, self.production, self.pregnancy,
                self.growth, self.grazing, self.total)


@dataclass(frozen=True)
class RequirementSet:
    vem: NutrientRequirement
    dve: NutrientRequirement
    metabolic_weight: CalculationStep
    fpcm: Optional[CalculationStep]
    milk_source: str

    @property
    def steps(self):
        leading = (self.metabolic_weight,)
        if self.fpcm is not None:
            leading += (self.fpcm,)
        return leading + self.vem.steps + self.dve.steps


@dataclass(frozen=True)
class VOCResult:
    lactation_age: CalculationStep
    maturity_component: CalculationStep
    lactation_component: CalculationStep
    pregnancy_component: CalculationStep
    voc_total: CalculationStep
    voc_kg_ds: CalculationStep
    saturation: CalculationStep
    total_filling_value: float
    saturation_percent: float
    status: str
    is_grazing: bool = False

    @property
    def capacity_kg_ds(self):
        return self.voc_kg_ds.result

    @property
    def steps(self):
        return (self.lactation_age, self.maturity_component, self.lactation_component,
                self.pregnancy_component, self.voc_total, self.voc_kg_ds, self.saturation)


@dataclass(frozen=True)
class FeedContribution:
    feed_name: str
    display_name: str
    basis: str
    amount_kg: float
    ds_percent: float
    dry_matter_kg: float
    nutrient_multiplier: float
    dry_matter: CalculationStep
    vem: CalculationStep
    dve: CalculationStep
    oeb: CalculationStep
    sw: CalculationStep
    vw: CalculationStep

    @property
    def steps(self):
        return (self.dry_matter, self.vem, self.dve, self.oeb, self.sw, self.vw)


@dataclass(frozen=True)
class SupplyTotals:
    dry_matter_kg: CalculationStep
    vem: CalculationStep
    dve: CalculationStep
    oeb: CalculationStep
    sw: CalculationStep
    vw: CalculationStep
    sw_per_kg_ds: CalculationStep
    vw_per_kg_ds: CalculationStep
    grazing_surcharge: Optional[CalculationStep] = None

    @property
    def steps(self):
        steps = (self.dry_matter_kg,)
        if self.grazing_surcharge is not None:
            steps += (self.grazing_surcharge,)
        return steps + (self.vem, self.dve, self.oeb, self.sw, self.vw,
                        self.sw_per_kg_ds, self.vw_per_kg_ds)


@dataclass(frozen=True)
class NutrientBalance:
    parameter: str
    requirement: float
    supply: float
    balance: float
    balance_percent: Optional[float]
    unit: str
    status: str
    supply_step: CalculationStep
    balance_step: CalculationStep


# ===================================================================
# RUN ENVELOPE
# ===================================================================

@dataclass(frozen=True)
class AuditableCalculationInputs:
    profile: AnimalProfile
    feeds: Tuple[Tuple[FeedDefinition, FeedInput], ...] = ()
    milk_record: Optional[MilkProductionRecord] = None
    is_grazing: bool = False


@dataclass(frozen=True)
class RationSummary:
    vem_required: float
    vem_supplied: float
    vem_balance: float
    vem_coverage: Optional[float]
    vem_status: str
    dve_required: float
    dve_supplied: float
    dve_balance: float
    dve_coverage: Optional[float]
    dve_status: str
    oeb_supplied: float
    oeb_status: str
    voc_capacity: float
    voc_utilization: float
    voc_status: str
    sw_per_kg_ds: float
    sw_status: str
    dry_matter_kg: float


@dataclass(frozen=True)
class AuditableCalculationResult:
    timestamp: str
    inputs: AuditableCalculationInputs
    requirements: RequirementSet
    voc: VOCResult
    feeds: Tuple[FeedContribution, ...]
    supply: SupplyTotals
    balances: Tuple[NutrientBalance, ...]
    summary: RationSummary
    steps: Tuple[CalculationStep, ...] = field(default_factory=tuple)

    def balance_for(self, parameter):
        for balance in self.balances:
            if balance.parameter == parameter:
                return balance
        raise KeyError(parameter)
