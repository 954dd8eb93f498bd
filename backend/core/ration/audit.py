"""
Ration audit orchestration.

Runs one complete audit:
- validates every input before the first step is computed
- calculates requirements, feed contributions, supply, intake capacity and
  balances in a fixed order
- records every step on a per-run AuditTrail
- assembles the display summary
"""

import time
from datetime import datetime, timezone

from middleware.logging_config import (
    get_logger,
    log_calculation_complete,
    log_calculation_start,
    log_calculation_step,
)

from .animal_requirements import compute_requirements, validate_milk_record, validate_profile
from .balance import evaluate
from .config import DEFAULT_CONSTANTS
from .exceptions import InvalidFeedInput
from .feed_processing import contributions_for, validate_feed
from .intake_capacity import compute_voc
from .models import (
    STATUS_DEFICIENT,
    STATUS_OK,
    STATUS_WARNING,
    AuditableCalculationResult,
    FeedDefinition,
    FeedInput,
    RationSummary,
)
from .supply import aggregate
from .utilities import AuditTrail

logger = get_logger("calculation.audit")

SW_STATUS_LABELS = {
    STATUS_OK: "OK",
    STATUS_WARNING: "Marginal",
    STATUS_DEFICIENT: "Insufficient",
}


def validate_inputs(inputs, constants=DEFAULT_CONSTANTS):
    """
    Validate the whole run up front.

    Raises:
        InvalidProfile, MissingFeedData, InvalidFeedInput
    """
    validate_profile(inputs.profile, constants)
    validate_milk_record(inputs.milk_record)
    for index, line in enumerate(inputs.feeds):
        if len(line) != 2 or not isinstance(line[0], FeedDefinition) or not isinstance(line[1], FeedInput):
            raise InvalidFeedInput("Feed lines must be (FeedDefinition, FeedInput) pairs",
                                   field=f"feeds[{index}]", value=repr(line))
        validate_feed(line[0], line[1])


def _round(value, decimals):
    return None if value is None else round(value, decimals)


def build_summary(requirements, supply, voc, balances):
    """Rounded display figures for the result header."""
    by_parameter = {balance.parameter: balance for balance in balances}
    vem, dve = by_parameter["VEM"], by_parameter["DVE"]
    oeb, sw = by_parameter["OEB"], by_parameter["SW"]
    return RationSummary(
        vem_required=round(vem.requirement, 0),
        vem_supplied=round(vem.supply, 0),
        vem_balance=round(vem.balance, 0),
        vem_coverage=_round(vem.balance_percent, 1),
        vem_status=vem.status,
        dve_required=round(dve.requirement, 0),
        dve_supplied=round(dve.supply, 0),
        dve_balance=round(dve.balance, 0),
        dve_coverage=_round(dve.balance_percent, 1),
        dve_status=dve.status,
        oeb_supplied=round(oeb.supply, 0),
        oeb_status=oeb.status,
        voc_capacity=round(voc.capacity_kg_ds, 2),
        voc_utilization=round(voc.saturation_percent, 1),
        voc_status=voc.status,
        sw_per_kg_ds=round(sw.supply, 2),
        sw_status=SW_STATUS_LABELS[sw.status],
        dry_matter_kg=round(supply.dry_matter_kg.result, 2),
    )


def run(inputs, constants=DEFAULT_CONSTANTS, timestamp=None):
    """
    Run a complete ration audit.

    Parameters:
    -----------
    inputs : AuditableCalculationInputs
        Profile, optional milk record, feed lines and grazing flag
    constants : RationConstants
        Coefficient table
    timestamp : str, optional
        ISO-8601 timestamp to stamp on the result; current UTC time when omitted

    Returns:
    --------
    AuditableCalculationResult : the full result tree with its audit trail
    """
    validate_inputs(inputs, constants)

    started = time.perf_counter()
    profile = inputs.profile
    log_calculation_start(logger, profile, len(inputs.feeds))
    trail = AuditTrail()

    requirements = compute_requirements(profile, inputs.milk_record, inputs.is_grazing, constants)
    trail.record(*requirements.steps)
    log_calculation_step(logger, "requirements", {
        "strategy": requirements.vem.strategy,
        "milk_source": requirements.milk_source,
        "vem": round(requirements.vem.value, 1),
        "dve": round(requirements.dve.value, 1),
    })

    contributions = contributions_for(inputs.feeds)
    for contribution in contributions:
        trail.record(*contribution.steps)
    log_calculation_step(logger, "feed contributions", {"fed": len(contributions)})

    supply = aggregate(contributions, inputs.is_grazing, constants)
    trail.record(*supply.steps)

    voc = compute_voc(profile, inputs.is_grazing, supply.vw.result, constants)
    trail.record(*voc.steps)
    log_calculation_step(logger, "intake capacity", {
        "capacity_kg_ds": round(voc.capacity_kg_ds, 2),
        "saturation": round(voc.saturation_percent, 1),
    })

    balances = evaluate(requirements, supply, constants)
    trail.record(*(balance.balance_step for balance in balances))

    if timestamp is None:
        timestamp = datetime.now(timezone.utc).isoformat(timespec="seconds")

    result = AuditableCalculationResult(
        timestamp=timestamp,
        inputs=inputs,
        requirements=requirements,
        voc=voc,
        feeds=tuple(contributions),
        supply=supply,
        balances=tuple(balances),
        summary=build_summary(requirements, supply, voc, balances),
        steps=trail.freeze(),
    )
    log_calculation_complete(
        logger,
        time.perf_counter() - started,
        len(result.steps),
        {balance.parameter: balance.status for balance in balances},
    )
    return result
