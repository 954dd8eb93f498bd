"""
Tests for the intake capacity (VOC) calculator
"""
import math

import pytest

from core.ration.config import DEFAULT_CONSTANTS
from core.ration.exceptions import InvalidCapacity, InvalidProfile
from core.ration.intake_capacity import compute_voc, voc_status
from core.ration.models import AnimalProfile


def make_profile(parity=3, days_in_milk=150, days_pregnant=0):
    return AnimalProfile(name="VOC cow", weight_kg=650, parity=parity,
                         days_in_milk=days_in_milk, days_pregnant=days_pregnant, is_lactating=True)


def product_form(parity, dim, days_pregnant):
    """CVB product form of the VOC equation"""
    age = (parity - 1) + dim / 365
    maturity = 8.743 + 3.563 * (1 - math.exp(-1.140 * age))
    lactation = 1 - 0.3156 * math.exp(-0.05889 * dim)
    pregnancy = 1 - 0.05529 * (days_pregnant / 220) ** 2
    return maturity * lactation * pregnancy


class TestCapacity:
    """Capacity components"""

    def test_first_lactation_at_calving(self):
        result = compute_voc(make_profile(parity=1, days_in_milk=0))
        assert result.lactation_age.result == 0
        assert result.maturity_component.result == pytest.approx(8.743)
        assert result.lactation_component.result == pytest.approx(-8.743 * 0.3156)
        assert result.capacity_kg_ds == pytest.approx(8.743 * (1 - 0.3156) * 2.0)

    @pytest.mark.parametrize("parity,dim,pregnant", [
        (1, 30, 0),
        (2, 120, 60),
        (3, 150, 120),
        (4, 280, 200),
    ])
    def test_sum_of_components_equals_product_form(self, parity, dim, pregnant):
        result = compute_voc(make_profile(parity, dim, pregnant))
        assert result.voc_total.result == pytest.approx(product_form(parity, dim, pregnant))
        assert result.capacity_kg_ds == pytest.approx(2.0 * product_form(parity, dim, pregnant))

    def test_pregnancy_component_zero_when_not_pregnant(self):
        result = compute_voc(make_profile(days_pregnant=0))
        assert result.pregnancy_component.result == 0
        assert len(result.steps) == 7

    def test_pregnancy_reduces_capacity(self):
        open_cow = compute_voc(make_profile(days_pregnant=0))
        pregnant = compute_voc(make_profile(days_pregnant=220))
        assert pregnant.pregnancy_component.result < 0
        assert pregnant.capacity_kg_ds < open_cow.capacity_kg_ds

    def test_grazing_does_not_change_capacity(self):
        housed = compute_voc(make_profile(), is_grazing=False)
        grazing = compute_voc(make_profile(), is_grazing=True)
        assert grazing.capacity_kg_ds == housed.capacity_kg_ds
        assert grazing.is_grazing is True
        assert grazing.voc_total.inputs["is_grazing"] is True

    def test_non_positive_capacity_raises(self):
        constants = DEFAULT_CONSTANTS.with_overrides(voc_alpha0=-20.0, voc_alpha1=0.0)
        with pytest.raises(InvalidCapacity):
            compute_voc(make_profile(parity=1, days_in_milk=0), constants=constants)

    def test_invalid_profile_raises(self):
        with pytest.raises(InvalidProfile):
            compute_voc(make_profile(parity=0))


class TestSaturation:
    """Saturation and status"""

    def test_saturation_percent(self):
        result = compute_voc(make_profile(), total_filling_value=10.0)
        assert result.saturation_percent == pytest.approx(10.0 / result.voc_total.result * 100)
        assert result.saturation.inputs["voc"] == result.voc_total.result

    def test_saturation_compares_filling_value_with_voc_not_kg_ds(self):
        profile = make_profile()
        voc = compute_voc(profile).voc_total.result
        under = compute_voc(profile, total_filling_value=voc * 0.99)
        over = compute_voc(profile, total_filling_value=voc * 1.5)
        assert under.saturation_percent == pytest.approx(99.0)
        assert under.status == "ok"
        assert over.saturation_percent == pytest.approx(150.0)
        assert over.status == "exceeded"

    def test_empty_ration_is_ok(self):
        result = compute_voc(make_profile(), total_filling_value=0.0)
        assert result.saturation_percent == 0
        assert result.status == "ok"

    @pytest.mark.parametrize("saturation,status", [
        (50.0, "ok"),
        (100.0, "ok"),
        (100.1, "warning"),
        (110.0, "warning"),
        (110.1, "exceeded"),
    ])
    def test_status_bands(self, saturation, status):
        assert voc_status(saturation) == status

    def test_tolerance_band_is_configurable(self):
        constants = DEFAULT_CONSTANTS.with_overrides(voc_tolerance_percent=105.0)
        assert voc_status(107.0, constants) == "exceeded"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
