"""
Feed processing module.

This module turns feed lines into auditable nutrient contributions:
- Dry matter from as-fed amount and DS%
- VEM, DVE and OEB scaled by the feed's accounting basis
- SW and VW scaled by dry matter
- Conservative SW/VW defaults for catalog records that lack them
- Conversion of catalog records into FeedDefinition objects
"""

from .config import (
    FEED_CATEGORIES,
    SOURCE_FEED,
    SOURCE_STRUCTURE,
    STRUCTURE_DEFAULTS_BY_CATEGORY,
    STRUCTURE_DEFAULTS_BY_FEED,
    STRUCTURE_DEFAULTS_BY_KEYWORD,
)
from .exceptions import InvalidFeedInput, MissingFeedData
from .models import (
    FEED_BASES,
    FEED_BASIS_DRY_MATTER,
    FEED_BASIS_PRODUCT,
    FeedContribution,
    FeedDefinition,
)
from .utilities import fmt, is_number, make_step

REQUIRED_NUTRIENTS = ("vem", "dve", "oeb")

# Basis spellings seen in catalog exports
_BASIS_ALIASES = {
    "per kg ds": FEED_BASIS_DRY_MATTER,
    "per kg dm": FEED_BASIS_DRY_MATTER,
    "per kg dry matter": FEED_BASIS_DRY_MATTER,
    "ds": FEED_BASIS_DRY_MATTER,
    "dm": FEED_BASIS_DRY_MATTER,
    "per kg product": FEED_BASIS_PRODUCT,
    "per kg as-fed product": FEED_BASIS_PRODUCT,
    "per kg as fed": FEED_BASIS_PRODUCT,
    "product": FEED_BASIS_PRODUCT,
    "as-fed": FEED_BASIS_PRODUCT,
}


# ===================================================================
# CATALOG BRIDGE
# ===================================================================

def normalize_basis(basis):
    if basis is None:
        return FEED_BASIS_DRY_MATTER
    key = str(basis).strip().lower()
    if key not in _BASIS_ALIASES:
        raise InvalidFeedInput(f"Unknown feed basis: {basis}", field="basis", value=basis)
    return _BASIS_ALIASES[key]


def lookup_structure_defaults(name, category):
    """
    Find conservative SW/VW values for a feed.

    Exact name first, then name keywords, then the feed category.

    Returns:
        tuple: ({"sw": float, "vw": float}, description of the match)
    """
    key = (name or "").strip().lower()
    if key in STRUCTURE_DEFAULTS_BY_FEED:
        return STRUCTURE_DEFAULTS_BY_FEED[key], f"default for '{key}'"
    for keywords, values in STRUCTURE_DEFAULTS_BY_KEYWORD:
        for keyword in keywords:
            if keyword in key:
                return values, f"default for '{keyword}' feeds"
    category = category if category in STRUCTURE_DEFAULTS_BY_CATEGORY else "concentrate"
    return STRUCTURE_DEFAULTS_BY_CATEGORY[category], f"default for {category}"


def resolve_structure_values(feed):
    """
    SW and VW per kg DS for a feed, substituting documented defaults.

    Returns:
        dict: sw, vw and the source citation for each
    """
    defaults, match = lookup_structure_defaults(feed.name, feed.category)
    resolved = {}
    for key in ("sw", "vw"):
        value = getattr(feed, key)
        if is_number(value):
            resolved[key] = float(value)
            resolved[f"{key}_source"] = SOURCE_FEED
        else:
            resolved[key] = defaults[key]
            resolved[f"{key}_source"] = f"{SOURCE_STRUCTURE} ({match})"
    return resolved


def feed_definition_from_record(record):
    """
    Build a FeedDefinition from a catalog record (dict).

    Accepts `ds_percent` or `default_ds_percent` and any known basis spelling.
    Missing nutrient values stay None and are reported when the feed is used.
    """
    name = record.get("name")
    if not name:
        raise InvalidFeedInput("Feed record has no name", field="name", value=name)
    category = record.get("category") or "concentrate"
    if category not in FEED_CATEGORIES:
        raise InvalidFeedInput(f"Unknown feed category: {category}", field="category", value=category)
    ds_percent = record.get("default_ds_percent", record.get("ds_percent", 100.0))
    return FeedDefinition(
        name=name,
        display_name=record.get("display_name"),
        basis=normalize_basis(record.get("basis")),
        vem=record.get("vem"),
        dve=record.get("dve"),
        oeb=record.get("oeb"),
        sw=record.get("sw"),
        vw=record.get("vw"),
        default_ds_percent=ds_percent,
        category=category,
    )


# ===================================================================
# VALIDATION
# ===================================================================

def validate_feed(feed, feed_input):
    """
    Check a feed line before any contribution is computed.

    Lines with an amount of zero or less are not fed and are not checked
    further.

    Raises:
        MissingFeedData: VEM, DVE or OEB absent or not finite
        InvalidFeedInput: unknown basis or DS% outside 0-100
    """
    if not is_number(feed_input.amount_kg):
        raise InvalidFeedInput(f"Feed '{feed.label}' amount must be a number",
                               field=f"{feed.name}.amount_kg", value=feed_input.amount_kg)
    if feed_input.amount_kg <= 0:
        return
    for nutrient in REQUIRED_NUTRIENTS:
        if not is_number(getattr(feed, nutrient)):
            raise MissingFeedData(
                f"Feed '{feed.label}' has no {nutrient.upper()} value",
                field=f"{feed.name}.{nutrient}",
                value=getattr(feed, nutrient),
            )
    if feed.basis not in FEED_BASES:
        raise InvalidFeedInput(f"Feed '{feed.label}' has unknown basis '{feed.basis}'",
                               field=f"{feed.name}.basis", value=feed.basis)
    ds_percent = effective_ds_percent(feed, feed_input)
    if not is_number(ds_percent) or not 0 <= ds_percent <= 100:
        raise InvalidFeedInput(f"Feed '{feed.label}' DS% must be between 0 and 100",
                               field=f"{feed.name}.ds_percent", value=ds_percent)


def effective_ds_percent(feed, feed_input):
    if feed_input.ds_percent is not None:
        return feed_input.ds_percent
    return feed.default_ds_percent


# ===================================================================
# CONTRIBUTIONS
# ===================================================================

def _nutrient_step(feed, nutrient, per_unit, multiplier, multiplier_label, unit):
    value = per_unit * multiplier
    return make_step(
        f"{feed.label} {nutrient}",
        f"{multiplier_label} × {nutrient} per unit",
        {multiplier_label: multiplier, f"{nutrient.lower()}_per_unit": per_unit, "basis": feed.basis},
        f"{fmt(multiplier, 3)} × {fmt(per_unit, 2)} = {fmt(value, 1)}",
        value,
        unit,
        SOURCE_FEED,
    )


def contribution_for(feed, feed_input):
    """
    Calculate what one feed line contributes to the ration.

    Parameters:
    -----------
    feed : FeedDefinition
        Feed master data
    feed_input : FeedInput
        As-fed amount and optional DS% override

    Returns:
    --------
    FeedContribution or None : None when the amount is zero or negative
    (the feed is not fed)
    """
    validate_feed(feed, feed_input)
    amount = float(feed_input.amount_kg)
    if amount <= 0:
        return None

    ds_percent = float(effective_ds_percent(feed, feed_input))
    dry_matter = amount * ds_percent / 100
    dry_matter_step = make_step(
        f"{feed.label} dry matter",
        "amount × DS% / 100",
        {"amount_kg": amount, "ds_percent": ds_percent},
        f"{fmt(amount, 2)} × {fmt(ds_percent, 1)} / 100 = {fmt(dry_matter, 3)}",
        dry_matter,
        "kg DS",
        SOURCE_FEED,
    )

    # per kg product values scale with the as-fed amount, not dry matter
    if feed.basis == FEED_BASIS_PRODUCT:
        multiplier, multiplier_label = amount, "amount_kg"
    else:
        multiplier, multiplier_label = dry_matter, "dry_matter_kg"

    structure = resolve_structure_values(feed)
    sw_value = dry_matter * structure["sw"]
    vw_value = dry_matter * structure["vw"]

    return FeedContribution(
        feed_name=feed.name,
        display_name=feed.label,
        basis=feed.basis,
        amount_kg=amount,
        ds_percent=ds_percent,
        dry_matter_kg=dry_matter,
        nutrient_multiplier=multiplier,
        dry_matter=dry_matter_step,
        vem=_nutrient_step(feed, "VEM", float(feed.vem), multiplier, multiplier_label, "VEM"),
        dve=_nutrient_step(feed, "DVE", float(feed.dve), multiplier, multiplier_label, "g DVE"),
        oeb=_nutrient_step(feed, "OEB", float(feed.oeb), multiplier, multiplier_label, "g OEB"),
        sw=make_step(
            f"{feed.label} SW",
            "dry_matter_kg × SW per kg DS",
            {"dry_matter_kg": dry_matter, "sw_per_kg_ds": structure["sw"]},
            f"{fmt(dry_matter, 3)} × {fmt(structure['sw'], 2)} = {fmt(sw_value, 2)}",
            sw_value,
            "SW",
            structure["sw_source"],
        ),
        vw=make_step(
            f"{feed.label} VW",
            "dry_matter_kg × VW per kg DS",
            {"dry_matter_kg": dry_matter, "vw_per_kg_ds": structure["vw"]},
            f"{fmt(dry_matter, 3)} × {fmt(structure['vw'], 2)} = {fmt(vw_value, 2)}",
            vw_value,
            "VW",
            structure["vw_source"],
        ),
    )


def contributions_for(feed_lines):
    """Contributions for (FeedDefinition, FeedInput) pairs, skipping feeds not fed."""
    contributions = []
    for feed, feed_input in feed_lines:
        contribution = contribution_for(feed, feed_input)
        if contribution is not None:
            contributions.append(contribution)
    return contributions
