"""
Utility functions for the ration audit engine.

This module contains helpers shared by the calculators:
- Mathematical operations with safety checks
- Deterministic number formatting for step text
- CalculationStep construction
- The per-run audit trail accumulator
"""

import numpy as np

from .models import CalculationStep


def safe_divide(numerator, denominator, default_value=0.0):
    """
    Safely divide two numbers, returning default value if denominator is zero.

    Args:
        numerator (float): Numerator value
        denominator (float): Denominator value
        default_value (float): Value to return if denominator is zero

    Returns:
        float: Division result or default value
    """
    if denominator == 0 or not np.isfinite(denominator):
        return default_value
    return numerator / denominator


def is_number(value):
    """True for finite ints and floats (bools excluded)."""
    if value is None or isinstance(value, bool):
        return False
    try:
        return bool(np.isfinite(float(value)))
    except (TypeError, ValueError):
        return False


def fmt(value, decimals=1):
    """Format a number with a fixed number of decimals."""
    if value is None:
        return "n/a"
    text = f"{float(value):.{decimals}f}"
    # avoid "-0.0"
    if float(text) == 0:
        text = f"{0.0:.{decimals}f}"
    return text


def make_step(name, formula, inputs, calculation, result, unit, source=""):
    """Build a CalculationStep, storing the result at full precision."""
    return CalculationStep(
        name=name,
        formula=formula,
        inputs=dict(inputs),
        calculation=calculation,
        result=float(result),
        unit=unit,
        source=source,
    )


def zero_step(name, reason, unit, source=""):
    """A step recording that a term does not apply."""
    return make_step(name, reason, {}, "0", 0.0, unit, source)


def sum_step(name, steps, unit, source=""):
    """Step adding up the results of `steps`."""
    total = float(sum(step.result for step in steps))
    calculation = " + ".join(fmt(step.result, 1) for step in steps) if steps else "0"
    return make_step(
        name,
        " + ".join(step.name for step in steps) if steps else "0",
        {step.name: step.result for step in steps},
        f"{calculation} = {fmt(total, 1)}",
        total,
        unit,
        source,
    )


class AuditTrail:
    """
    Ordered accumulator of calculation steps for one audit run.

    Created by the orchestrator and passed into each calculator, which
    records its steps in calculation order.
    """

    def __init__(self):
        self._steps = []

    def record(self, *steps):
        for step in steps:
            if step is not None:
                self._steps.append(step)
        return self

    def freeze(self):
        return tuple(self._steps)
