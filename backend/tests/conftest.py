"""
Shared fixtures for ration audit tests
"""
import pytest

from core.ration.models import (
    FEED_BASIS_DRY_MATTER,
    FEED_BASIS_PRODUCT,
    AnimalProfile,
    AuditableCalculationInputs,
    FeedDefinition,
    FeedInput,
    MilkProductionRecord,
)

FIXED_TIMESTAMP = "2025-03-01T08:00:00+00:00"


@pytest.fixture
def lactating_cow():
    """Mature cow mid-lactation, not pregnant"""
    return AnimalProfile(
        name="Mature cow",
        weight_kg=675,
        parity=3,
        days_in_milk=150,
        days_pregnant=0,
        is_lactating=True,
    )


@pytest.fixture
def milk_record():
    return MilkProductionRecord(kg_per_day=30.0, fat_percent=4.4, protein_percent=3.5)


@pytest.fixture
def grass_silage():
    return FeedDefinition(
        name="kuil_1_gras",
        display_name="Grass silage",
        basis=FEED_BASIS_DRY_MATTER,
        vem=951,
        dve=76,
        oeb=28,
        sw=1.05,
        vw=1.10,
        default_ds_percent=41.0,
        category="roughage",
    )


@pytest.fixture
def dairy_concentrate():
    """Concentrate with values per kg as-fed product and no SW/VW in the catalog"""
    return FeedDefinition(
        name="stalbrok",
        display_name="Dairy concentrate",
        basis=FEED_BASIS_PRODUCT,
        vem=940,
        dve=105,
        oeb=20,
        default_ds_percent=89.0,
        category="concentrate",
    )


@pytest.fixture
def ration_inputs(lactating_cow, milk_record, grass_silage, dairy_concentrate):
    return AuditableCalculationInputs(
        profile=lactating_cow,
        milk_record=milk_record,
        feeds=(
            (grass_silage, FeedInput(amount_kg=40.0)),
            (dairy_concentrate, FeedInput(amount_kg=8.0)),
        ),
        is_grazing=False,
    )
