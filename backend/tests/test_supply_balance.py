"""
Tests for supply aggregation and balance evaluation
"""
import pytest

from core.ration.animal_requirements import compute_requirements
from core.ration.balance import coverage_status, evaluate, structure_status
from core.ration.feed_processing import contribution_for
from core.ration.models import AnimalProfile, FeedDefinition, FeedInput
from core.ration.supply import aggregate


@pytest.fixture
def contributions(grass_silage, dairy_concentrate):
    return [
        contribution_for(grass_silage, FeedInput(amount_kg=5.3)),
        contribution_for(dairy_concentrate, FeedInput(amount_kg=8.0)),
    ]


class TestAggregate:
    """Supply totals"""

    def test_empty_ration_is_all_zero(self):
        supply = aggregate([])
        for step in supply.steps:
            assert step.result == 0
        assert supply.grazing_surcharge is None

    def test_sums(self, contributions):
        supply = aggregate(contributions)
        assert supply.dry_matter_kg.result == pytest.approx(2.173 + 7.12)
        assert supply.vem.result == pytest.approx(2.173 * 951 + 8.0 * 940)
        assert supply.dve.result == pytest.approx(2.173 * 76 + 8.0 * 105)
        assert supply.oeb.result == pytest.approx(2.173 * 28 + 8.0 * 20)

    def test_structure_value_weighted_by_dry_matter(self, contributions):
        supply = aggregate(contributions)
        expected = (2.173 * 1.05 + 7.12 * 0.45) / (2.173 + 7.12)
        assert supply.sw_per_kg_ds.result == pytest.approx(expected)
        simple_average = (1.05 + 0.45) / 2
        assert supply.sw_per_kg_ds.result != pytest.approx(simple_average)

    def test_grazing_surcharge_affects_vem_only(self, contributions):
        housed = aggregate(contributions, is_grazing=False)
        grazing = aggregate(contributions, is_grazing=True)
        assert grazing.vem.result - housed.vem.result == pytest.approx(1175)
        for name in ("dry_matter_kg", "dve", "oeb", "sw", "vw", "sw_per_kg_ds", "vw_per_kg_ds"):
            assert getattr(grazing, name).result == getattr(housed, name).result
        assert grazing.grazing_surcharge.result == 1175

    def test_grazing_on_empty_ration(self):
        supply = aggregate([], is_grazing=True)
        assert supply.vem.result == 1175
        assert supply.dve.result == 0


class TestStatusBands:
    """Threshold helpers"""

    @pytest.mark.parametrize("percent,status", [
        (120.0, "ok"),
        (95.0, "ok"),
        (94.9, "warning"),
        (85.0, "warning"),
        (84.9, "deficient"),
        (None, "deficient"),
    ])
    def test_coverage_status(self, percent, status):
        assert coverage_status(percent) == status

    @pytest.mark.parametrize("sw,status", [
        (1.2, "ok"),
        (1.0, "ok"),
        (0.9, "warning"),
        (0.85, "warning"),
        (0.84, "deficient"),
        (0.0, "deficient"),
    ])
    def test_structure_status(self, sw, status):
        assert structure_status(sw) == status


class TestEvaluate:
    """Balance evaluation"""

    def test_balance_order_and_values(self, lactating_cow, milk_record, contributions):
        requirements = compute_requirements(lactating_cow, milk_record)
        supply = aggregate(contributions)
        balances = evaluate(requirements, supply)
        assert [b.parameter for b in balances] == ["VEM", "DVE", "OEB", "SW"]
        vem = balances[0]
        assert vem.balance == pytest.approx(supply.vem.result - requirements.vem.value)
        assert vem.balance_percent == pytest.approx(supply.vem.result / requirements.vem.value * 100)
        assert vem.supply_step is supply.vem

    def test_oeb_is_threshold_without_percent(self, lactating_cow, contributions):
        requirements = compute_requirements(lactating_cow)
        balances = evaluate(requirements, aggregate(contributions))
        oeb = balances[2]
        assert oeb.status == "ok"
        assert oeb.balance_percent is None
        assert oeb.requirement == 0

    def test_negative_oeb_is_deficient(self, lactating_cow):
        feed = FeedDefinition(name="maize", vem=980, dve=50, oeb=-35, category="roughage")
        supply = aggregate([contribution_for(feed, FeedInput(amount_kg=10.0))])
        oeb = evaluate(compute_requirements(lactating_cow), supply)[2]
        assert oeb.status == "deficient"
        assert oeb.balance_percent is None

    def test_sw_has_no_percent(self, lactating_cow, contributions):
        sw = evaluate(compute_requirements(lactating_cow), aggregate(contributions))[3]
        assert sw.balance_percent is None
        assert sw.requirement == 1.0

    def test_zero_requirement_is_deficient_without_percent(self):
        profile = AnimalProfile(name="Target cow", weight_kg=650, parity=3, days_in_milk=120,
                                is_lactating=True, target_vem=0, target_dve=0)
        requirements = compute_requirements(profile)
        balances = evaluate(requirements, aggregate([]))
        for balance in balances[:2]:
            assert balance.requirement == 0
            assert balance.balance_percent is None
            assert balance.status == "deficient"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
