"""
Supply aggregation for a ration.

Sums feed contributions into ration totals. SW and VW per kg DS are
weighted by each feed's dry-matter share. Grazing adds a VEM surcharge to
the VEM total only.
"""

from .config import DEFAULT_CONSTANTS, SOURCE_FEED, SOURCE_STRUCTURE, SOURCE_VEM
from .models import SupplyTotals
from .utilities import fmt, make_step, safe_divide


def _total_step(name, contribution_steps, unit, source, decimals=1):
    total = float(sum(step.result for step in contribution_steps))
    if contribution_steps:
        terms = " + ".join(fmt(step.result, decimals) for step in contribution_steps)
    else:
        terms = "0 (no feeds)"
    return make_step(
        name,
        "Σ feed contributions",
        {step.name: step.result for step in contribution_steps},
        f"{terms} = {fmt(total, decimals)}",
        total,
        unit,
        source,
    )


def _weighted_step(name, value_key, contributions, total_step, dry_matter_step):
    weighted = safe_divide(total_step.result, dry_matter_step.result)
    if contributions:
        terms = " + ".join(
            f"{fmt(c.dry_matter_kg, 3)} × {fmt(getattr(c, value_key).inputs[f'{value_key}_per_kg_ds'], 2)}"
            for c in contributions
        )
        calculation = f"({terms}) / {fmt(dry_matter_step.result, 3)} = {fmt(weighted, 3)}"
    else:
        calculation = "0 (no dry matter)"
    return make_step(
        name,
        f"Σ(dry_matter_kg × {value_key.upper()} per kg DS) / Σ dry_matter_kg",
        {f"total_{value_key}": total_step.result, "total_dry_matter_kg": dry_matter_step.result},
        calculation,
        weighted,
        f"{value_key.upper()}/kg DS",
        SOURCE_STRUCTURE,
    )


def aggregate(contributions, is_grazing=False, constants=DEFAULT_CONSTANTS):
    """
    Aggregate feed contributions into ration supply totals.

    Args:
        contributions (list): FeedContribution objects (feeds actually fed)
        is_grazing (bool): Add the grazing VEM surcharge
        constants (RationConstants): Coefficient table

    Returns:
        SupplyTotals: total steps; all zero for an empty ration
    """
    contributions = list(contributions)

    dry_matter = _total_step("Total dry matter", [c.dry_matter for c in contributions],
                             "kg DS", SOURCE_FEED, decimals=3)
    feed_vem = [c.vem for c in contributions]

    grazing_step = None
    if is_grazing:
        surcharge = constants.vem_grazing_supply_surcharge
        grazing_step = make_step(
            "Grazing VEM surcharge",
            "fixed grazing supply surcharge",
            {"is_grazing": True},
            f"grazing → {fmt(surcharge, 1)}",
            surcharge,
            "VEM",
            SOURCE_VEM,
        )
        feed_vem = feed_vem + [grazing_step]

    vem = _total_step("Total VEM supply", feed_vem, "VEM", SOURCE_FEED)
    dve = _total_step("Total DVE supply", [c.dve for c in contributions], "g DVE", SOURCE_FEED)
    oeb = _total_step("Total OEB supply", [c.oeb for c in contributions], "g OEB", SOURCE_FEED)
    sw = _total_step("Total SW", [c.sw for c in contributions], "SW", SOURCE_STRUCTURE, decimals=2)
    vw = _total_step("Total VW", [c.vw for c in contributions], "VW", SOURCE_STRUCTURE, decimals=2)

    return SupplyTotals(
        dry_matter_kg=dry_matter,
        vem=vem,
        dve=dve,
        oeb=oeb,
        sw=sw,
        vw=vw,
        sw_per_kg_ds=_weighted_step("SW per kg DS", "sw", contributions, sw, dry_matter),
        vw_per_kg_ds=_weighted_step("VW per kg DS", "vw", contributions, vw, dry_matter),
        grazing_surcharge=grazing_step,
    )
