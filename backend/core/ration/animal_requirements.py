"""
Animal requirements calculation module.

This module calculates the daily VEM (energy) and DVE (protein) requirements
of a dairy cow from CVB coefficients. Every term is returned as a
CalculationStep so the total can be traced back to its parts:
- Maintenance (metabolic body weight for VEM, linear body weight for DVE)
- Milk production (FPCM for VEM, protein yield for DVE)
- Late pregnancy
- Growth for first and second parity animals early in lactation
- Grazing activity (VEM only)

Three strategies produce the same NutrientRequirement shape:
- standard: fixed CVB addends
- dynamic: rounded components with the gestation curve and a proportional
  grazing term, selected by AnimalProfile.uses_dynamic_requirements
- static target: the profile's target VEM/DVE when no milk basis exists
"""

import math
import re

import numpy as np

from middleware.logging_config import get_logger

from .config import DEFAULT_CONSTANTS, SOURCE_DVE, SOURCE_DYNAMIC, SOURCE_FPCM, SOURCE_VEM
from .exceptions import InvalidProfile
from .models import MilkProductionRecord, NutrientRequirement, RequirementSet
from .utilities import fmt, is_number, make_step, sum_step, zero_step

logger = get_logger("calculation.requirements")

NUTRIENT_VEM = "VEM"
NUTRIENT_DVE = "DVE"
NUTRIENT_UNITS = {NUTRIENT_VEM: "VEM/day", NUTRIENT_DVE: "g DVE/day"}

STRATEGY_STANDARD = "standard"
STRATEGY_DYNAMIC = "dynamic"
STRATEGY_STATIC = "static_target"

MILK_SOURCE_RECORD = "milk record"
MILK_SOURCE_PROFILE_DEFAULT = "profile default"
MILK_SOURCE_NAME = "name-derived default"
MILK_SOURCE_NONE = "none"
MILK_SOURCE_DRY = "not lactating"

_NAME_MILK_PATTERN = re.compile(r"(\d+(?:[.,]\d+)?)\s*kg\s*melk", re.IGNORECASE)


# ===================================================================
# VALIDATION
# ===================================================================

def validate_profile(profile, constants=DEFAULT_CONSTANTS):
    """
    Reject physiologically impossible profiles before any arithmetic.

    Raises:
        InvalidProfile: on non-positive weight, a parity that is not a whole
        number of at least 1, or days in milk / days pregnant outside
        their ranges.
    """
    if not is_number(profile.weight_kg) or profile.weight_kg <= 0:
        raise InvalidProfile("Body weight must be a positive number",
                             field="weight_kg", value=profile.weight_kg)
    if not is_number(profile.parity) or profile.parity < 1 or not float(profile.parity).is_integer():
        raise InvalidProfile("Parity must be a whole number of at least 1",
                             field="parity", value=profile.parity)
    if not is_number(profile.days_in_milk) or not 0 <= profile.days_in_milk <= constants.max_days_in_milk:
        raise InvalidProfile(f"Days in milk must be between 0 and {constants.max_days_in_milk}",
                             field="days_in_milk", value=profile.days_in_milk)
    if not is_number(profile.days_pregnant) or not 0 <= profile.days_pregnant <= constants.max_days_pregnant:
        raise InvalidProfile(f"Days pregnant must be between 0 and {constants.max_days_pregnant}",
                             field="days_pregnant", value=profile.days_pregnant)
    for name in ("target_vem", "target_dve"):
        target = getattr(profile, name)
        if target is not None and (not is_number(target) or target < 0):
            raise InvalidProfile(f"{name} must be a non-negative number", field=name, value=target)
    if profile.default_milk is not None:
        validate_milk_record(profile.default_milk, field="default_milk")


def validate_milk_record(record, field="milk_record"):
    if record is None:
        return
    if not is_number(record.kg_per_day) or record.kg_per_day < 0:
        raise InvalidProfile("Milk yield must be a non-negative number",
                             field=f"{field}.kg_per_day", value=record.kg_per_day)
    for name in ("fat_percent", "protein_percent"):
        value = getattr(record, name)
        if not is_number(value) or not 0 <= value <= 100:
            raise InvalidProfile(f"Milk {name.replace('_', ' ')} must be between 0 and 100",
                                 field=f"{field}.{name}", value=value)


# ===================================================================
# MILK BASIS
# ===================================================================

def parse_milk_from_name(name):
    """Return the milk yield encoded in a profile name like '41kg melk', or None."""
    if not name:
        return None
    match = _NAME_MILK_PATTERN.search(name)
    if match is None:
        return None
    return float(match.group(1).replace(",", "."))


def resolve_milk_basis(profile, milk_record=None, constants=DEFAULT_CONSTANTS):
    """
    Pick the milk production record used for production requirements.

    Order: explicit record, profile default triple, yield parsed from the
    profile name with the standard fat/protein percentages.

    Returns:
        tuple: (MilkProductionRecord or None, source label)
    """
    if not profile.lactating:
        return None, MILK_SOURCE_DRY
    if milk_record is not None:
        return milk_record, MILK_SOURCE_RECORD
    if profile.default_milk is not None:
        return profile.default_milk, MILK_SOURCE_PROFILE_DEFAULT
    parsed = parse_milk_from_name(profile.name)
    if parsed is not None:
        return MilkProductionRecord(
            kg_per_day=parsed,
            fat_percent=constants.name_default_fat_percent,
            protein_percent=constants.name_default_protein_percent,
        ), MILK_SOURCE_NAME
    return None, MILK_SOURCE_NONE


def calculate_fpcm(record, source_label=MILK_SOURCE_RECORD, constants=DEFAULT_CONSTANTS):
    """Fat and protein corrected milk step for a production record."""
    c = constants
    factor = c.fpcm_base + c.fpcm_fat * record.fat_percent + c.fpcm_protein * record.protein_percent
    fpcm = record.kg_per_day * factor
    source = SOURCE_FPCM
    if source_label != MILK_SOURCE_RECORD:
        source = f"{SOURCE_FPCM} ({source_label})"
    return make_step(
        "FPCM",
        f"milk × ({c.fpcm_base} + {c.fpcm_fat} × fat% + {c.fpcm_protein} × protein%)",
        {"milk_kg": record.kg_per_day, "fat_percent": record.fat_percent,
         "protein_percent": record.protein_percent},
        f"{fmt(record.kg_per_day, 1)} × ({c.fpcm_base} + {c.fpcm_fat} × {fmt(record.fat_percent, 2)}"
        f" + {c.fpcm_protein} × {fmt(record.protein_percent, 2)}) = {fmt(fpcm, 2)}",
        fpcm,
        "kg FPCM/day",
        source,
    )


def calculate_metabolic_weight(profile, constants=DEFAULT_CONSTANTS):
    exponent = constants.metabolic_weight_exponent
    metabolic = float(np.power(profile.weight_kg, exponent))
    return make_step(
        "Metabolic body weight",
        f"BW^{exponent}",
        {"weight_kg": profile.weight_kg},
        f"{fmt(profile.weight_kg, 1)}^{exponent} = {fmt(metabolic, 2)}",
        metabolic,
        "kg^0.75",
        SOURCE_VEM,
    )


def _protein_yield(record):
    """Milk protein yield in g/day."""
    return record.kg_per_day * record.protein_percent * 10


def _round_half_up(value):
    return float(math.floor(value + 0.5))


# ===================================================================
# STANDARD TERMS
# ===================================================================

def _vem_maintenance(profile, constants, rounded=False):
    c = constants
    coefficient = c.vem_maintenance_lactating if profile.lactating else c.vem_maintenance_dry
    metabolic = float(np.power(profile.weight_kg, c.metabolic_weight_exponent))
    value = coefficient * metabolic
    if rounded:
        value = _round_half_up(value)
    state = "lactating" if profile.lactating else "dry"
    return make_step(
        "VEM maintenance",
        f"{coefficient} × BW^{c.metabolic_weight_exponent} ({state})",
        {"weight_kg": profile.weight_kg, "metabolic_weight": metabolic, "coefficient": coefficient},
        f"{coefficient} × {fmt(profile.weight_kg, 1)}^{c.metabolic_weight_exponent}"
        f" = {coefficient} × {fmt(metabolic, 2)} = {fmt(value, 1)}",
        value,
        "VEM/day",
        SOURCE_DYNAMIC if rounded else SOURCE_VEM,
    )


def _vem_production(profile, basis, fpcm_step, constants, rounded=False):
    if basis is None:
        reason = "not lactating" if not profile.lactating else "no milk production basis"
        return zero_step("VEM production", f"0 ({reason})", "VEM/day", SOURCE_VEM)
    c = constants
    value = c.vem_per_kg_fpcm * fpcm_step.result
    if rounded:
        value = _round_half_up(value)
    return make_step(
        "VEM production",
        f"{c.vem_per_kg_fpcm} × FPCM",
        {"fpcm_kg": fpcm_step.result, "vem_per_kg_fpcm": c.vem_per_kg_fpcm},
        f"{c.vem_per_kg_fpcm} × {fmt(fpcm_step.result, 2)} = {fmt(value, 1)}",
        value,
        "VEM/day",
        SOURCE_DYNAMIC if rounded else SOURCE_VEM,
    )


def _pregnancy(profile, nutrient, constants):
    c = constants
    unit = NUTRIENT_UNITS[nutrient]
    source = SOURCE_VEM if nutrient == NUTRIENT_VEM else SOURCE_DVE
    name = f"{nutrient} pregnancy"
    if profile.days_pregnant < c.pregnancy_threshold_days:
        return zero_step(
            name,
            f"0 (days pregnant {profile.days_pregnant} < {c.pregnancy_threshold_days})",
            unit,
            source,
        )
    value = c.vem_pregnancy_late if nutrient == NUTRIENT_VEM else c.dve_pregnancy_late
    return make_step(
        name,
        f"fixed {fmt(value, 0)} when days pregnant ≥ {c.pregnancy_threshold_days}",
        {"days_pregnant": profile.days_pregnant},
        f"{profile.days_pregnant} ≥ {c.pregnancy_threshold_days} → {fmt(value, 1)}",
        value,
        unit,
        source,
    )


def _vem_pregnancy_curve(profile, constants):
    c = constants
    days = profile.days_pregnant
    if days < c.pregnancy_threshold_days:
        return zero_step(
            "VEM pregnancy",
            f"0 (days pregnant {days} < {c.pregnancy_threshold_days})",
            "VEM/day",
            SOURCE_DYNAMIC,
        )
    fraction = (days - c.pregnancy_threshold_days) / c.vem_dynamic_pregnancy_span_days
    value = _round_half_up(float(np.power(fraction, 2)) * c.vem_dynamic_pregnancy_max)
    return make_step(
        "VEM pregnancy",
        f"((days pregnant − {c.pregnancy_threshold_days}) / {fmt(c.vem_dynamic_pregnancy_span_days, 0)})²"
        f" × {fmt(c.vem_dynamic_pregnancy_max, 0)}",
        {"days_pregnant": days},
        f"(({days} − {c.pregnancy_threshold_days}) / {fmt(c.vem_dynamic_pregnancy_span_days, 0)})²"
        f" × {fmt(c.vem_dynamic_pregnancy_max, 0)} = {fmt(value, 1)}",
        value,
        "VEM/day",
        SOURCE_DYNAMIC,
    )


def _growth(profile, nutrient, constants):
    c = constants
    unit = NUTRIENT_UNITS[nutrient]
    source = SOURCE_VEM if nutrient == NUTRIENT_VEM else SOURCE_DVE
    name = f"{nutrient} growth"
    if nutrient == NUTRIENT_VEM:
        by_parity = {1: c.vem_growth_parity1, 2: c.vem_growth_parity2}
    else:
        by_parity = {1: c.dve_growth_parity1, 2: c.dve_growth_parity2}
    parity = int(profile.parity)
    if parity not in by_parity:
        return zero_step(name, f"0 (parity {parity} > 2)", unit, source)
    if profile.days_in_milk >= c.growth_dim_limit:
        return zero_step(
            name,
            f"0 (days in milk {profile.days_in_milk} ≥ {c.growth_dim_limit})",
            unit,
            source,
        )
    value = by_parity[parity]
    return make_step(
        name,
        f"parity {parity} allowance while days in milk < {c.growth_dim_limit}",
        {"parity": parity, "days_in_milk": profile.days_in_milk},
        f"parity {parity}, DIM {profile.days_in_milk} → {fmt(value, 1)}",
        value,
        unit,
        source,
    )


def _vem_grazing(is_grazing, constants):
    if not is_grazing:
        return zero_step("VEM grazing", "0 (not grazing)", "VEM/day", SOURCE_VEM)
    value = constants.vem_grazing_activity
    return make_step(
        "VEM grazing",
        "fixed grazing activity addend",
        {"is_grazing": True},
        f"grazing → {fmt(value, 1)}",
        value,
        "VEM/day",
        SOURCE_VEM,
    )


def _vem_grazing_proportional(is_grazing, maintenance, production, constants):
    if not is_grazing:
        return zero_step("VEM grazing", "0 (not grazing)", "VEM/day", SOURCE_DYNAMIC)
    fraction = constants.vem_dynamic_grazing_fraction
    value = _round_half_up(fraction * (maintenance.result + production.result))
    return make_step(
        "VEM grazing",
        f"{fraction} × (maintenance + production)",
        {"maintenance": maintenance.result, "production": production.result, "fraction": fraction},
        f"{fraction} × ({fmt(maintenance.result, 1)} + {fmt(production.result, 1)}) = {fmt(value, 1)}",
        value,
        "VEM/day",
        SOURCE_DYNAMIC,
    )


def _dve_maintenance(profile, constants, rounded=False):
    c = constants
    value = c.dve_maintenance_base + c.dve_maintenance_per_kg_bw * profile.weight_kg
    if rounded:
        value = _round_half_up(value)
    return make_step(
        "DVE maintenance",
        f"{fmt(c.dve_maintenance_base, 0)} + {c.dve_maintenance_per_kg_bw} × BW",
        {"weight_kg": profile.weight_kg},
        f"{fmt(c.dve_maintenance_base, 0)} + {c.dve_maintenance_per_kg_bw} × {fmt(profile.weight_kg, 1)}"
        f" = {fmt(value, 1)}",
        value,
        "g DVE/day",
        SOURCE_DYNAMIC if rounded else SOURCE_DVE,
    )


def _dve_production(profile, basis, constants, rounded=False):
    if basis is None:
        reason = "not lactating" if not profile.lactating else "no milk production basis"
        return zero_step("DVE production", f"0 ({reason})", "g DVE/day", SOURCE_DVE)
    c = constants
    protein_yield = _protein_yield(basis)
    value = c.dve_production_linear * protein_yield + c.dve_production_quadratic * protein_yield ** 2
    if rounded:
        value = _round_half_up(value)
    return make_step(
        "DVE production",
        f"{c.dve_production_linear} × PY + {c.dve_production_quadratic} × PY², PY = milk × protein% × 10",
        {"milk_kg": basis.kg_per_day, "protein_percent": basis.protein_percent,
         "protein_yield_g": protein_yield},
        f"{c.dve_production_linear} × {fmt(protein_yield, 1)} + {c.dve_production_quadratic}"
        f" × {fmt(protein_yield, 1)}² = {fmt(value, 1)}",
        value,
        "g DVE/day",
        SOURCE_DYNAMIC if rounded else SOURCE_DVE,
    )


def _dve_grazing():
    return zero_step("DVE grazing", "0 (no grazing term for DVE)", "g DVE/day", SOURCE_DVE)


def _build_requirement(nutrient, strategy, maintenance, production, pregnancy, growth, grazing):
    unit = NUTRIENT_UNITS[nutrient]
    source = SOURCE_VEM if nutrient == NUTRIENT_VEM else SOURCE_DVE
    total = sum_step(f"{nutrient} requirement total",
                     [maintenance, production, pregnancy, growth, grazing], unit, source)
    return NutrientRequirement(
        nutrient=nutrient,
        unit=unit,
        strategy=strategy,
        maintenance=maintenance,
        production=production,
        pregnancy=pregnancy,
        growth=growth,
        grazing=grazing,
        total=total,
    )


# ===================================================================
# STRATEGIES
# ===================================================================

class StandardRequirements:
    """Fixed CVB addends for pregnancy, growth and grazing."""

    name = STRATEGY_STANDARD

    def compute(self, profile, basis, fpcm_step, is_grazing, nutrient, constants):
        if nutrient == NUTRIENT_VEM:
            return _build_requirement(
                nutrient, self.name,
                _vem_maintenance(profile, constants),
                _vem_production(profile, basis, fpcm_step, constants),
                _pregnancy(profile, nutrient, constants),
                _growth(profile, nutrient, constants),
                _vem_grazing(is_grazing, constants),
            )
        return _build_requirement(
            nutrient, self.name,
            _dve_maintenance(profile, constants),
            _dve_production(profile, basis, constants),
            _pregnancy(profile, nutrient, constants),
            _growth(profile, nutrient, constants),
            _dve_grazing(),
        )


class DynamicRequirements:
    """Rounded components, gestation curve and proportional grazing term."""

    name = STRATEGY_DYNAMIC

    def compute(self, profile, basis, fpcm_step, is_grazing, nutrient, constants):
        if nutrient == NUTRIENT_VEM:
            maintenance = _vem_maintenance(profile, constants, rounded=True)
            production = _vem_production(profile, basis, fpcm_step, constants, rounded=True)
            return _build_requirement(
                nutrient, self.name,
                maintenance,
                production,
                _vem_pregnancy_curve(profile, constants),
                _growth(profile, nutrient, constants),
                _vem_grazing_proportional(is_grazing, maintenance, production, constants),
            )
        return _build_requirement(
            nutrient, self.name,
            _dve_maintenance(profile, constants, rounded=True),
            _dve_production(profile, basis, constants, rounded=True),
            _pregnancy(profile, nutrient, constants),
            _growth(profile, nutrient, constants),
            _dve_grazing(),
        )


class StaticTargetRequirements:
    """The profile's stored target stands in for the maintenance term."""

    name = STRATEGY_STATIC

    def compute(self, profile, basis, fpcm_step, is_grazing, nutrient, constants):
        unit = NUTRIENT_UNITS[nutrient]
        target = profile.target_vem if nutrient == NUTRIENT_VEM else profile.target_dve
        maintenance = make_step(
            f"{nutrient} maintenance",
            f"profile target {nutrient}",
            {f"target_{nutrient.lower()}": target},
            f"target = {fmt(target, 1)}",
            target,
            unit,
            f"profile '{profile.name}' target",
        )
        reason = "included in profile target"
        grazing = _vem_grazing(is_grazing, constants) if nutrient == NUTRIENT_VEM else _dve_grazing()
        return _build_requirement(
            nutrient, self.name,
            maintenance,
            zero_step(f"{nutrient} production", f"0 ({reason})", unit),
            zero_step(f"{nutrient} pregnancy", f"0 ({reason})", unit),
            zero_step(f"{nutrient} growth", f"0 ({reason})", unit),
            grazing,
        )


_STRATEGIES = {
    STRATEGY_STANDARD: StandardRequirements(),
    STRATEGY_DYNAMIC: DynamicRequirements(),
    STRATEGY_STATIC: StaticTargetRequirements(),
}


def select_strategy(profile, basis, nutrient):
    """Choose the requirement strategy for a profile and resolved milk basis."""
    if profile.uses_dynamic_requirements:
        return _STRATEGIES[STRATEGY_DYNAMIC]
    target = profile.target_vem if nutrient == NUTRIENT_VEM else profile.target_dve
    if basis is None and profile.lactating and target is not None:
        return _STRATEGIES[STRATEGY_STATIC]
    return _STRATEGIES[STRATEGY_STANDARD]


def _requirement_for(profile, basis, fpcm_step, is_grazing, nutrient, constants):
    strategy = select_strategy(profile, basis, nutrient)
    if basis is None and profile.lactating and strategy.name == STRATEGY_STANDARD:
        logger.warning(
            f"No milk production basis for lactating profile '{profile.name}'; "
            f"{nutrient} production requirement set to 0"
        )
    return strategy.compute(profile, basis, fpcm_step, is_grazing, nutrient, constants)


# ===================================================================
# PUBLIC API
# ===================================================================

def compute_requirement(profile, milk_record=None, is_grazing=False, nutrient=NUTRIENT_VEM,
                        constants=DEFAULT_CONSTANTS):
    """
    Calculate the daily requirement of one nutrient.

    Parameters:
    -----------
    profile : AnimalProfile
        Animal physiological state
    milk_record : MilkProductionRecord, optional
        Measured production; falls back to profile defaults when absent
    is_grazing : bool
        Adds the grazing activity term (VEM only)
    nutrient : str
        "VEM" or "DVE"
    constants : RationConstants
        Coefficient table

    Returns:
    --------
    NutrientRequirement : maintenance, production, pregnancy, growth and
    grazing steps with their total
    """
    if nutrient not in NUTRIENT_UNITS:
        raise ValueError(f"Unknown nutrient: {nutrient}")
    validate_profile(profile, constants)
    validate_milk_record(milk_record)

    basis, source_label = resolve_milk_basis(profile, milk_record, constants)
    fpcm_step = calculate_fpcm(basis, source_label, constants) if basis is not None else None
    return _requirement_for(profile, basis, fpcm_step, is_grazing, nutrient, constants)


def compute_requirements(profile, milk_record=None, is_grazing=False, constants=DEFAULT_CONSTANTS):
    """Calculate VEM and DVE requirements together with the shared milk basis steps."""
    validate_profile(profile, constants)
    validate_milk_record(milk_record)

    basis, source_label = resolve_milk_basis(profile, milk_record, constants)
    fpcm_step = calculate_fpcm(basis, source_label, constants) if basis is not None else None
    return RequirementSet(
        vem=_requirement_for(profile, basis, fpcm_step, is_grazing, NUTRIENT_VEM, constants),
        dve=_requirement_for(profile, basis, fpcm_step, is_grazing, NUTRIENT_DVE, constants),
        metabolic_weight=calculate_metabolic_weight(profile, constants),
        fpcm=fpcm_step,
        milk_source=source_label,
    )
