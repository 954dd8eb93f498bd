"""
Nutrient balance evaluation.

Compares ration supply with requirements:
- VEM and DVE are coverage targets (percent of requirement)
- OEB is a threshold: any supply at or above zero is fine
- SW is a threshold on the ration's structure value per kg DS
"""

from .config import DEFAULT_CONSTANTS, SOURCE_STRUCTURE
from .models import STATUS_DEFICIENT, STATUS_OK, STATUS_WARNING, NutrientBalance
from .utilities import fmt, make_step


def coverage_status(balance_percent, constants=DEFAULT_CONSTANTS):
    if balance_percent is None:
        return STATUS_DEFICIENT
    if balance_percent >= constants.coverage_ok_percent:
        return STATUS_OK
    if balance_percent >= constants.coverage_warning_percent:
        return STATUS_WARNING
    return STATUS_DEFICIENT


def structure_status(sw_per_kg_ds, constants=DEFAULT_CONSTANTS):
    if sw_per_kg_ds >= constants.sw_minimum:
        return STATUS_OK
    if sw_per_kg_ds >= constants.sw_warning_threshold:
        return STATUS_WARNING
    return STATUS_DEFICIENT


def _coverage_balance(requirement, supply_step, constants):
    required = requirement.value
    supplied = supply_step.result
    balance = supplied - required
    if required > 0:
        percent = supplied / required * 100
        calculation = (f"{fmt(supplied, 1)} − {fmt(required, 1)} = {fmt(balance, 1)};"
                       f" {fmt(supplied, 1)} / {fmt(required, 1)} × 100 = {fmt(percent, 1)}%")
    else:
        # degenerate requirement, no coverage figure
        percent = None
        calculation = f"{fmt(supplied, 1)} − {fmt(required, 1)} = {fmt(balance, 1)}; coverage undefined"
    status = coverage_status(percent, constants)
    balance_step = make_step(
        f"{requirement.nutrient} balance",
        "supply − requirement; supply / requirement × 100",
        {"supply": supplied, "requirement": required},
        calculation,
        balance,
        requirement.unit,
        requirement.total.source,
    )
    return NutrientBalance(
        parameter=requirement.nutrient,
        requirement=required,
        supply=supplied,
        balance=balance,
        balance_percent=percent,
        unit=requirement.unit,
        status=status,
        supply_step=supply_step,
        balance_step=balance_step,
    )


def _oeb_balance(supply_step, constants):
    supplied = supply_step.result
    minimum = constants.oeb_minimum
    status = STATUS_OK if supplied >= minimum else STATUS_DEFICIENT
    balance = supplied - minimum
    return NutrientBalance(
        parameter="OEB",
        requirement=minimum,
        supply=supplied,
        balance=balance,
        balance_percent=None,
        unit="g OEB/day",
        status=status,
        supply_step=supply_step,
        balance_step=make_step(
            "OEB balance",
            f"supply ≥ {fmt(minimum, 0)}",
            {"supply": supplied, "minimum": minimum},
            f"{fmt(supplied, 1)} {'≥' if status == STATUS_OK else '<'} {fmt(minimum, 0)} → {status}",
            balance,
            "g OEB/day",
            supply_step.source,
        ),
    )


def _structure_balance(supply_step, constants):
    supplied = supply_step.result
    minimum = constants.sw_minimum
    status = structure_status(supplied, constants)
    balance = supplied - minimum
    return NutrientBalance(
        parameter="SW",
        requirement=minimum,
        supply=supplied,
        balance=balance,
        balance_percent=None,
        unit="SW/kg DS",
        status=status,
        supply_step=supply_step,
        balance_step=make_step(
            "SW balance",
            f"SW per kg DS against minimum {fmt(minimum, 2)} (warning from {fmt(constants.sw_warning_threshold, 2)})",
            {"sw_per_kg_ds": supplied, "minimum": minimum,
             "warning_threshold": constants.sw_warning_threshold},
            f"{fmt(supplied, 2)} − {fmt(minimum, 2)} = {fmt(balance, 2)} → {status}",
            balance,
            "SW/kg DS",
            SOURCE_STRUCTURE,
        ),
    )


def evaluate(requirements, supply, constants=DEFAULT_CONSTANTS):
    """
    Evaluate ration supply against requirements.

    Args:
        requirements (RequirementSet): VEM and DVE requirements
        supply (SupplyTotals): Aggregated ration supply
        constants (RationConstants): Thresholds

    Returns:
        list: NutrientBalance for VEM, DVE, OEB and SW, in that order
    """
    return [
        _coverage_balance(requirements.vem, supply.vem, constants),
        _coverage_balance(requirements.dve, supply.dve, constants),
        _oeb_balance(supply.oeb, constants),
        _structure_balance(supply.sw_per_kg_ds, constants),
    ]
