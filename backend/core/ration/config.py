"""
Configuration constants for the ration audit engine.

This module holds the CVB coefficient table used by every calculator:
- Energy (VEM) maintenance, production, pregnancy, growth and grazing terms
- Protein (DVE) maintenance, production, pregnancy and growth terms
- Intake capacity (VOC) curve coefficients
- Structure value, OEB and coverage thresholds
- Validation ranges for animal and feed inputs

The table is a frozen dataclass built once at import. Components receive it
as an argument; overrides produce a new instance.
"""

from dataclasses import asdict, dataclass, replace


# ===================================================================
# CITATIONS
# ===================================================================

SOURCE_VEM = "CVB 2025, Table 3.1"
SOURCE_DVE = "CVB 2025, Table 3.2"
SOURCE_FPCM = "CVB 2025, FPCM definition"
SOURCE_VOC = "CVB 2025, VOC model (Table 4.1)"
SOURCE_FEED = "CVB 2025 feed table"
SOURCE_STRUCTURE = "CVB 2022, structure value"
SOURCE_DYNAMIC = "CVB 2025, dynamic lactation requirements"


@dataclass(frozen=True)
class RationConstants:
    # ===================================================================
    # VEM (energy)
    # ===================================================================
    vem_maintenance_lactating: float = 53.0      # VEM per kg BW^0.75
    vem_maintenance_dry: float = 42.4            # VEM per kg BW^0.75
    vem_per_kg_fpcm: float = 390.0
    vem_pregnancy_late: float = 450.0            # fixed addend from day 190
    vem_growth_parity1: float = 625.0
    vem_growth_parity2: float = 325.0
    vem_grazing_activity: float = 500.0          # requirement addend
    vem_grazing_supply_surcharge: float = 1175.0  # added to ration supply
    vem_dynamic_grazing_fraction: float = 0.30   # of maintenance + production
    vem_dynamic_pregnancy_span_days: float = 93.0
    vem_dynamic_pregnancy_max: float = 2000.0

    # ===================================================================
    # DVE (protein, g/day)
    # ===================================================================
    dve_maintenance_base: float = 54.0
    dve_maintenance_per_kg_bw: float = 0.1
    dve_production_linear: float = 1.396
    dve_production_quadratic: float = 0.000195
    dve_pregnancy_late: float = 150.0
    dve_growth_parity1: float = 64.0
    dve_growth_parity2: float = 37.0

    # ===================================================================
    # FPCM
    # ===================================================================
    fpcm_base: float = 0.337
    fpcm_fat: float = 0.116
    fpcm_protein: float = 0.06
    name_default_fat_percent: float = 4.60
    name_default_protein_percent: float = 3.75

    # ===================================================================
    # PHYSIOLOGICAL THRESHOLDS
    # ===================================================================
    metabolic_weight_exponent: float = 0.75
    pregnancy_threshold_days: int = 190
    growth_dim_limit: int = 100                  # growth applies while DIM < limit

    # ===================================================================
    # VOC (intake capacity)
    # ===================================================================
    voc_alpha0: float = 8.743
    voc_alpha1: float = 3.563
    voc_rho_alpha: float = 1.140
    voc_beta: float = 0.3156
    voc_rho_beta: float = 0.05889
    voc_delta220: float = 0.05529
    voc_pregnancy_reference_days: float = 220.0
    voc_pregnancy_threshold_days: int = 0
    voc_to_kg_ds: float = 2.0
    voc_tolerance_percent: float = 110.0

    # ===================================================================
    # BALANCE THRESHOLDS
    # ===================================================================
    sw_minimum: float = 1.00
    sw_warning_threshold: float = 0.85
    oeb_minimum: float = 0.0
    coverage_ok_percent: float = 95.0
    coverage_warning_percent: float = 85.0

    # ===================================================================
    # VALIDATION RANGES
    # ===================================================================
    max_days_in_milk: int = 305
    max_days_pregnant: int = 283

    def with_overrides(self, **values):
        """Return a copy with the given constants replaced."""
        unknown = set(values) - set(self.to_dict())
        if unknown:
            raise ValueError(f"Unknown ration constants: {sorted(unknown)}")
        return replace(self, **values)

    def to_dict(self):
        return asdict(self)


DEFAULT_CONSTANTS = RationConstants()


# Conservative structure (SW) and filling (VW) values per kg DS used when a
# catalog record lacks them. Keys are matched against the feed name.
STRUCTURE_DEFAULTS_BY_FEED = {
    "kuil_1_gras": {"sw": 1.05, "vw": 1.10},
    "kuil_2_gras": {"sw": 1.05, "vw": 1.10},
    "gras_silage": {"sw": 1.05, "vw": 1.10},
    "mais_silage": {"sw": 0.75, "vw": 0.85},
    "mais": {"sw": 0.75, "vw": 0.85},
    "hooi": {"sw": 1.20, "vw": 1.30},
    "bierborstel": {"sw": 0.15, "vw": 0.45},
    "gerstmeel": {"sw": 0.50, "vw": 0.40},
    "raapzaadschroot": {"sw": 0.40, "vw": 0.32},
    "stalbrok": {"sw": 0.45, "vw": 0.38},
    "startbrok": {"sw": 0.40, "vw": 0.35},
}

# Partial name matches, checked in order after the exact keys above
STRUCTURE_DEFAULTS_BY_KEYWORD = [
    (("gras", "grass"), {"sw": 1.05, "vw": 1.10}),
    (("mais", "maize", "corn"), {"sw": 0.75, "vw": 0.85}),
    (("hooi", "hay"), {"sw": 1.20, "vw": 1.30}),
]

STRUCTURE_DEFAULTS_BY_CATEGORY = {
    "roughage": {"sw": 1.00, "vw": 1.00},
    "concentrate": {"sw": 0.10, "vw": 0.40},
    "byproduct": {"sw": 0.15, "vw": 0.55},
    "mineral": {"sw": 0.0, "vw": 0.30},
}

FEED_CATEGORIES = tuple(STRUCTURE_DEFAULTS_BY_CATEGORY)
