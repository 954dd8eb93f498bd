"""
Tests for feed contributions and the feed catalog bridge
"""
import pytest

from core.ration.exceptions import InvalidFeedInput, MissingFeedData
from core.ration.feed_processing import (
    contribution_for,
    contributions_for,
    feed_definition_from_record,
    lookup_structure_defaults,
    resolve_structure_values,
)
from core.ration.models import FEED_BASIS_DRY_MATTER, FEED_BASIS_PRODUCT, FeedDefinition, FeedInput


class TestContribution:
    """Per-feed nutrient contributions"""

    def test_grass_silage_scenario(self, grass_silage):
        """5.3 kg at 41% DS, values per kg DS"""
        contribution = contribution_for(grass_silage, FeedInput(amount_kg=5.3, ds_percent=41.0))
        assert contribution.dry_matter_kg == pytest.approx(2.173)
        assert contribution.vem.result == pytest.approx(2066.5, abs=0.1)
        assert contribution.dve.result == pytest.approx(165.1, abs=0.1)
        assert contribution.oeb.result == pytest.approx(60.8, abs=0.1)

    def test_product_basis_multiplies_by_as_fed_amount(self, dairy_concentrate):
        contribution = contribution_for(dairy_concentrate, FeedInput(amount_kg=8.0))
        assert contribution.dry_matter_kg == pytest.approx(8.0 * 0.89)
        assert contribution.nutrient_multiplier == pytest.approx(8.0)
        assert contribution.vem.result == pytest.approx(8.0 * 940)
        assert contribution.dve.result == pytest.approx(8.0 * 105)

    def test_bases_give_different_ratios_for_same_numbers(self):
        """Same numbers, different basis: same dry matter, different VEM"""
        values = dict(name="test_feed", vem=940, dve=105, oeb=20, default_ds_percent=89.0)
        per_ds = FeedDefinition(basis=FEED_BASIS_DRY_MATTER, **values)
        per_product = FeedDefinition(basis=FEED_BASIS_PRODUCT, **values)
        line = FeedInput(amount_kg=8.0)
        ds_contribution = contribution_for(per_ds, line)
        product_contribution = contribution_for(per_product, line)
        assert ds_contribution.dry_matter_kg == product_contribution.dry_matter_kg
        ds_ratio = ds_contribution.vem.result / ds_contribution.dry_matter_kg
        product_ratio = product_contribution.vem.result / product_contribution.dry_matter_kg
        assert ds_ratio == pytest.approx(940)
        assert product_ratio == pytest.approx(940 / 0.89)

    def test_structure_values_scale_with_dry_matter(self, grass_silage):
        contribution = contribution_for(grass_silage, FeedInput(amount_kg=10.0))
        assert contribution.sw.result == pytest.approx(4.1 * 1.05)
        assert contribution.vw.result == pytest.approx(4.1 * 1.10)

    def test_default_ds_percent_used_without_override(self, grass_silage):
        contribution = contribution_for(grass_silage, FeedInput(amount_kg=10.0))
        assert contribution.ds_percent == 41.0
        assert contribution.dry_matter_kg == pytest.approx(4.1)

    def test_ds_override(self, grass_silage):
        contribution = contribution_for(grass_silage, FeedInput(amount_kg=10.0, ds_percent=35.0))
        assert contribution.dry_matter_kg == pytest.approx(3.5)

    def test_each_nutrient_is_a_step(self, grass_silage):
        contribution = contribution_for(grass_silage, FeedInput(amount_kg=5.3))
        names = [step.name for step in contribution.steps]
        assert names == [
            "Grass silage dry matter",
            "Grass silage VEM",
            "Grass silage DVE",
            "Grass silage OEB",
            "Grass silage SW",
            "Grass silage VW",
        ]
        assert "×" in contribution.vem.calculation

    @pytest.mark.parametrize("amount", [0, -2.5])
    def test_not_fed(self, grass_silage, amount):
        assert contribution_for(grass_silage, FeedInput(amount_kg=amount)) is None

    def test_contributions_skip_not_fed_lines(self, grass_silage, dairy_concentrate):
        contributions = contributions_for([
            (grass_silage, FeedInput(amount_kg=0)),
            (dairy_concentrate, FeedInput(amount_kg=6.0)),
        ])
        assert [c.feed_name for c in contributions] == ["stalbrok"]


class TestValidation:
    """Feed line validation"""

    @pytest.mark.parametrize("missing", ["vem", "dve", "oeb"])
    def test_missing_energy_or_protein_fails(self, missing):
        values = dict(name="incomplete", vem=900, dve=80, oeb=10)
        values[missing] = None
        with pytest.raises(MissingFeedData) as exc_info:
            contribution_for(FeedDefinition(**values), FeedInput(amount_kg=2.0))
        assert missing in exc_info.value.field

    def test_missing_data_ignored_when_not_fed(self):
        feed = FeedDefinition(name="incomplete", vem=None, dve=80, oeb=10)
        assert contribution_for(feed, FeedInput(amount_kg=0)) is None

    @pytest.mark.parametrize("ds_percent", [-1.0, 100.5])
    def test_ds_percent_out_of_range(self, grass_silage, ds_percent):
        with pytest.raises(InvalidFeedInput):
            contribution_for(grass_silage, FeedInput(amount_kg=5.0, ds_percent=ds_percent))

    def test_unknown_basis(self):
        feed = FeedDefinition(name="odd", vem=900, dve=80, oeb=10, basis="per litre")
        with pytest.raises(InvalidFeedInput):
            contribution_for(feed, FeedInput(amount_kg=1.0))


class TestCatalogBridge:
    """Structure value defaults and catalog record conversion"""

    def test_missing_structure_values_use_named_default(self, dairy_concentrate):
        resolved = resolve_structure_values(dairy_concentrate)
        assert resolved["sw"] == 0.45
        assert resolved["vw"] == 0.38
        assert "default" in resolved["sw_source"]

    def test_catalog_values_win_over_defaults(self, grass_silage):
        resolved = resolve_structure_values(grass_silage)
        assert resolved["sw"] == 1.05
        assert "default" not in resolved["sw_source"]

    def test_keyword_and_category_defaults(self):
        assert lookup_structure_defaults("snijmais 2024", "roughage")[0] == {"sw": 0.75, "vw": 0.85}
        assert lookup_structure_defaults("Meadow hay", "roughage")[0] == {"sw": 1.20, "vw": 1.30}
        assert lookup_structure_defaults("wortelen", "roughage")[0] == {"sw": 1.00, "vw": 1.00}
        assert lookup_structure_defaults("eiwitbrok", "concentrate")[0] == {"sw": 0.10, "vw": 0.40}

    def test_default_recorded_in_step_source(self, dairy_concentrate):
        contribution = contribution_for(dairy_concentrate, FeedInput(amount_kg=4.0))
        assert "stalbrok" in contribution.sw.source
        assert contribution.sw.result == pytest.approx(4.0 * 0.89 * 0.45)

    def test_feed_definition_from_record(self):
        feed = feed_definition_from_record({
            "name": "bierborstel",
            "basis": "per kg product",
            "vem": 230,
            "dve": 48,
            "oeb": 12,
            "ds_percent": 22,
            "category": "byproduct",
        })
        assert feed.basis == FEED_BASIS_PRODUCT
        assert feed.default_ds_percent == 22
        assert feed.sw is None

    def test_feed_definition_rejects_unknown_category(self):
        with pytest.raises(InvalidFeedInput):
            feed_definition_from_record({"name": "x", "vem": 1, "dve": 1, "oeb": 1, "category": "liquid"})


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
