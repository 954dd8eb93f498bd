"""
Report generation module.

This module serialises an audit result:
- Plain-text audit report listing every calculation step
- Step, feed and balance tables as plain records and pandas DataFrames
- JSON-ready dictionary of the full result tree

The text report depends only on the result; the timestamp line is its
only time-dependent content.
"""

from dataclasses import asdict

import pandas as pd

from .utilities import fmt

REPORT_WIDTH = 72

SECTION_REQUIREMENTS = "Requirements"
SECTION_FEEDS = "Feed contributions"
SECTION_SUPPLY = "Supply totals"
SECTION_VOC = "Intake capacity (VOC)"
SECTION_BALANCES = "Nutrient balances"


def _format_value(value):
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (int, float)):
        return format(float(value), ".6g")
    return str(value)


def _format_inputs(inputs):
    if not inputs:
        return "-"
    return ", ".join(f"{key}={_format_value(value)}" for key, value in inputs.items())


def _heading(title, underline="-"):
    return [title, underline * len(title)]


def _step_lines(step, decimals=2):
    return [
        f"  {step.name}",
        f"    Formula:     {step.formula}",
        f"    Inputs:      {_format_inputs(step.inputs)}",
        f"    Calculation: {step.calculation}",
        f"    Result:      {fmt(step.result, decimals)} {step.unit}",
        f"    Source:      {step.source or '-'}",
    ]


def step_sections(result):
    """
    Group the result's steps by section in calculation order.

    Returns:
        list: (section, subsection or None, steps) tuples
    """
    sections = [
        (SECTION_REQUIREMENTS, None, result.requirements.steps),
    ]
    for contribution in result.feeds:
        sections.append((SECTION_FEEDS, contribution.display_name, contribution.steps))
    sections.append((SECTION_SUPPLY, None, result.supply.steps))
    sections.append((SECTION_VOC, None, result.voc.steps))
    sections.append((SECTION_BALANCES, None, tuple(b.balance_step for b in result.balances)))
    return sections


# ===================================================================
# TABLES
# ===================================================================

STEP_COLUMNS = ["section", "feed", "name", "formula", "calculation", "result", "unit", "source"]
FEED_COLUMNS = ["Feed", "Basis", "Amount (kg)", "DS%", "DM (kg)",
                "VEM", "DVE (g)", "OEB (g)", "SW", "VW"]


def step_records(result):
    """
    One plain dict per calculation step, in calculation order.

    Steps outside a feed section carry an empty `feed` value so the rows
    stay JSON-safe.
    """
    rows = []
    for section, subsection, steps in step_sections(result):
        for step in steps:
            rows.append({
                "section": section,
                "feed": subsection or "",
                "name": step.name,
                "formula": step.formula,
                "calculation": step.calculation,
                "result": step.result,
                "unit": step.unit,
                "source": step.source,
            })
    return rows


def steps_dataframe(result):
    """One row per calculation step."""
    return pd.DataFrame(step_records(result), columns=STEP_COLUMNS)


def balances_dataframe(result):
    """Balance table with display-formatted values."""
    rows = []
    for balance in result.balances:
        rows.append({
            "Parameter": balance.parameter,
            "Requirement": fmt(balance.requirement, 2 if balance.parameter == "SW" else 1),
            "Supply": fmt(balance.supply, 2 if balance.parameter == "SW" else 1),
            "Balance": fmt(balance.balance, 2 if balance.parameter == "SW" else 1),
            "Coverage": "-" if balance.balance_percent is None else f"{fmt(balance.balance_percent, 1)}%",
            "Unit": balance.unit,
            "Status": balance.status,
        })
    return pd.DataFrame(rows, columns=["Parameter", "Requirement", "Supply", "Balance",
                                       "Coverage", "Unit", "Status"])


def feed_records(result):
    """Per-feed contribution rows as plain dicts."""
    rows = []
    for c in result.feeds:
        rows.append({
            "Feed": c.display_name,
            "Basis": c.basis,
            "Amount (kg)": round(c.amount_kg, 2),
            "DS%": round(c.ds_percent, 1),
            "DM (kg)": round(c.dry_matter_kg, 3),
            "VEM": round(c.vem.result, 1),
            "DVE (g)": round(c.dve.result, 1),
            "OEB (g)": round(c.oeb.result, 1),
            "SW": round(c.sw.result, 2),
            "VW": round(c.vw.result, 2),
        })
    return rows


def feeds_dataframe(result):
    """Per-feed contribution table."""
    return pd.DataFrame(feed_records(result), columns=FEED_COLUMNS)


def result_to_dict(result):
    """JSON-ready dictionary of the full result tree."""
    return asdict(result)


# ===================================================================
# TEXT REPORT
# ===================================================================

def _input_lines(result):
    inputs = result.inputs
    profile = inputs.profile
    lines = _heading("INPUTS")
    lines.append(f"  Animal:          {profile.name}")
    lines.append(f"  Body weight:     {fmt(profile.weight_kg, 1)} kg")
    lines.append(f"  Parity:          {profile.parity}")
    lines.append(f"  Days in milk:    {profile.days_in_milk}")
    lines.append(f"  Days pregnant:   {profile.days_pregnant}")
    lines.append(f"  Lactating:       {_format_value(profile.lactating)}")
    lines.append(f"  Grazing:         {_format_value(inputs.is_grazing)}")
    record = inputs.milk_record
    if record is not None:
        lines.append(
            f"  Milk record:     {fmt(record.kg_per_day, 1)} kg, fat {fmt(record.fat_percent, 2)}%,"
            f" protein {fmt(record.protein_percent, 2)}%"
        )
    else:
        lines.append(f"  Milk record:     none (basis: {result.requirements.milk_source})")
    lines.append(f"  Strategy:        {result.requirements.vem.strategy}")
    lines.append("  Feeds:")
    if not inputs.feeds:
        lines.append("    (none)")
    for feed, feed_input in inputs.feeds:
        ds = feed_input.ds_percent if feed_input.ds_percent is not None else feed.default_ds_percent
        lines.append(
            f"    - {feed.label}: {fmt(feed_input.amount_kg, 2)} kg at {fmt(ds, 1)}% DS ({feed.basis})"
        )
    return lines


def _summary_lines(result):
    s = result.summary
    lines = _heading("SUMMARY")
    vem_cov = "-" if s.vem_coverage is None else f"{fmt(s.vem_coverage, 1)}%"
    dve_cov = "-" if s.dve_coverage is None else f"{fmt(s.dve_coverage, 1)}%"
    lines.append(f"  VEM: {fmt(s.vem_supplied, 0)} of {fmt(s.vem_required, 0)}"
                 f" (balance {fmt(s.vem_balance, 0)}, coverage {vem_cov}) {s.vem_status}")
    lines.append(f"  DVE: {fmt(s.dve_supplied, 0)} g of {fmt(s.dve_required, 0)} g"
                 f" (balance {fmt(s.dve_balance, 0)} g, coverage {dve_cov}) {s.dve_status}")
    lines.append(f"  OEB: {fmt(s.oeb_supplied, 0)} g {s.oeb_status}")
    lines.append(f"  Dry matter: {fmt(s.dry_matter_kg, 2)} kg")
    lines.append(f"  VOC: {fmt(s.voc_utilization, 1)}% of {fmt(result.voc.voc_total.result, 2)} VW"
                 f" ({fmt(s.voc_capacity, 2)} kg DS) {s.voc_status}")
    lines.append(f"  SW: {fmt(s.sw_per_kg_ds, 2)} per kg DS {s.sw_status}")
    return lines


def to_report(result):
    """
    Render the audit result as plain text.

    Args:
        result (AuditableCalculationResult): Result of core.ration.audit.run

    Returns:
        str: Report text, identical for identical results
    """
    lines = ["=" * REPORT_WIDTH, "RATION AUDIT REPORT", "=" * REPORT_WIDTH]
    lines.append(f"Timestamp: {result.timestamp}")
    lines.append("")
    lines.extend(_input_lines(result))

    current = None
    for section, subsection, steps in step_sections(result):
        if section != current:
            lines.append("")
            lines.extend(_heading(section.upper()))
            current = section
        if subsection is not None:
            lines.append(f" [{subsection}]")
        for step in steps:
            lines.extend(_step_lines(step))

    lines.append("")
    lines.extend(_heading("BALANCE TABLE"))
    lines.append(balances_dataframe(result).to_string(index=False))
    lines.append("")
    lines.extend(_summary_lines(result))
    lines.append("")
    return "\n".join(lines)
