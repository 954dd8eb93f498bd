"""
Intake capacity (VOC) calculation module.

Implements the CVB feed intake capacity model for dairy cows. The capacity
is built from three additive components so each can be audited on its own:
- maturity: α0 + α1 × (1 − e^(−ρα × a)), a = (parity − 1) + DIM / 365
- lactation: −maturity × β × e^(−ρβ × DIM)
- pregnancy: −(maturity + lactation) × δ220 × (days pregnant / 220)²

The sum equals the CVB product form maturity × (1 − β e^(−ρβ DIM)) ×
(1 − δ220 (g/220)²). The VOC, in VW units, is compared with the ration's total
filling value to derive saturation; the kg DS capacity is reported alongside.
"""

import numpy as np

from .config import DEFAULT_CONSTANTS, SOURCE_VOC
from .exceptions import InvalidCapacity
from .models import STATUS_EXCEEDED, STATUS_OK, STATUS_WARNING, VOCResult
from .animal_requirements import validate_profile
from .utilities import fmt, make_step, zero_step


def voc_status(saturation_percent, constants=DEFAULT_CONSTANTS):
    """ok up to 100 %, warning up to the tolerance band, exceeded above."""
    if saturation_percent <= 100.0:
        return STATUS_OK
    if saturation_percent <= constants.voc_tolerance_percent:
        return STATUS_WARNING
    return STATUS_EXCEEDED


def compute_voc(profile, is_grazing=False, total_filling_value=0.0, constants=DEFAULT_CONSTANTS):
    """
    Calculate intake capacity and ration saturation.

    Parameters:
    -----------
    profile : AnimalProfile
        Animal physiological state
    is_grazing : bool
        Recorded with the result; does not change capacity
    total_filling_value : float
        Sum of the ration's VW contributions
    constants : RationConstants
        Coefficient table

    Returns:
    --------
    VOCResult : capacity steps, saturation and status

    Raises:
    -------
    InvalidCapacity : when the computed capacity is not positive
    """
    validate_profile(profile, constants)
    c = constants
    parity = profile.parity
    dim = profile.days_in_milk
    days_pregnant = profile.days_pregnant

    # ===================================================================
    # LACTATION AGE
    # ===================================================================
    age = (parity - 1) + dim / 365.0
    age_step = make_step(
        "Lactation age",
        "(parity − 1) + DIM / 365",
        {"parity": parity, "days_in_milk": dim},
        f"({parity} − 1) + {dim} / 365 = {fmt(age, 4)}",
        age,
        "years",
        SOURCE_VOC,
    )

    # ===================================================================
    # COMPONENTS
    # ===================================================================
    maturity = c.voc_alpha0 + c.voc_alpha1 * (1 - float(np.exp(-c.voc_rho_alpha * age)))
    maturity_step = make_step(
        "VOC maturity component",
        "α0 + α1 × (1 − e^(−ρα × a))",
        {"alpha0": c.voc_alpha0, "alpha1": c.voc_alpha1, "rho_alpha": c.voc_rho_alpha,
         "lactation_age": age},
        f"{c.voc_alpha0} + {c.voc_alpha1} × (1 − e^(−{c.voc_rho_alpha} × {fmt(age, 4)}))"
        f" = {fmt(maturity, 4)}",
        maturity,
        "VW",
        SOURCE_VOC,
    )

    lactation_factor = c.voc_beta * float(np.exp(-c.voc_rho_beta * dim))
    lactation = -maturity * lactation_factor
    lactation_step = make_step(
        "VOC lactation component",
        "−maturity × β × e^(−ρβ × DIM)",
        {"maturity": maturity, "beta": c.voc_beta, "rho_beta": c.voc_rho_beta,
         "days_in_milk": dim},
        f"−{fmt(maturity, 4)} × {c.voc_beta} × e^(−{c.voc_rho_beta} × {dim}) = {fmt(lactation, 4)}",
        lactation,
        "VW",
        SOURCE_VOC,
    )

    if days_pregnant > c.voc_pregnancy_threshold_days:
        ratio = days_pregnant / c.voc_pregnancy_reference_days
        pregnancy = -(maturity + lactation) * c.voc_delta220 * float(np.power(ratio, 2))
        pregnancy_step = make_step(
            "VOC pregnancy component",
            "−(maturity + lactation) × δ220 × (days pregnant / 220)²",
            {"maturity": maturity, "lactation": lactation, "delta220": c.voc_delta220,
             "days_pregnant": days_pregnant},
            f"−({fmt(maturity, 4)} + {fmt(lactation, 4)}) × {c.voc_delta220}"
            f" × ({days_pregnant} / {fmt(c.voc_pregnancy_reference_days, 0)})² = {fmt(pregnancy, 4)}",
            pregnancy,
            "VW",
            SOURCE_VOC,
        )
    else:
        pregnancy = 0.0
        pregnancy_step = zero_step(
            "VOC pregnancy component",
            f"0 (days pregnant {days_pregnant} ≤ {c.voc_pregnancy_threshold_days})",
            "VW",
            SOURCE_VOC,
        )

    # ===================================================================
    # CAPACITY
    # ===================================================================
    total = maturity + lactation + pregnancy
    total_step = make_step(
        "VOC total",
        "maturity + lactation + pregnancy",
        {"maturity": maturity, "lactation": lactation, "pregnancy": pregnancy,
         "is_grazing": bool(is_grazing)},
        f"{fmt(maturity, 4)} + ({fmt(lactation, 4)}) + ({fmt(pregnancy, 4)}) = {fmt(total, 4)}",
        total,
        "VW",
        SOURCE_VOC,
    )

    capacity = total * c.voc_to_kg_ds
    capacity_step = make_step(
        "VOC capacity",
        f"VOC × {c.voc_to_kg_ds}",
        {"voc": total, "factor": c.voc_to_kg_ds},
        f"{fmt(total, 4)} × {c.voc_to_kg_ds} = {fmt(capacity, 2)}",
        capacity,
        "kg DS",
        SOURCE_VOC,
    )
    if capacity <= 0:
        raise InvalidCapacity(
            f"Intake capacity must be positive, got {capacity:.4f} kg DS",
            field="voc_kg_ds",
            value=capacity,
        )

    # ===================================================================
    # SATURATION
    # ===================================================================
    saturation = total_filling_value / total * 100
    status = voc_status(saturation, constants)
    saturation_step = make_step(
        "VOC saturation",
        "total VW / VOC × 100",
        {"total_filling_value": total_filling_value, "voc": total},
        f"{fmt(total_filling_value, 2)} / {fmt(total, 2)} × 100 = {fmt(saturation, 1)}%",
        saturation,
        "%",
        SOURCE_VOC,
    )

    return VOCResult(
        lactation_age=age_step,
        maturity_component=maturity_step,
        lactation_component=lactation_step,
        pregnancy_component=pregnancy_step,
        voc_total=total_step,
        voc_kg_ds=capacity_step,
        saturation=saturation_step,
        total_filling_value=float(total_filling_value),
        saturation_percent=float(saturation),
        status=status,
        is_grazing=bool(is_grazing),
    )
