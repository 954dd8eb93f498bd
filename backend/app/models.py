from pydantic import BaseModel, Field, field_validator
from typing import List, Optional

from core.ration.feed_processing import feed_definition_from_record
from core.ration.models import (
    FEED_BASIS_DRY_MATTER,
    AnimalProfile,
    AuditableCalculationInputs,
    FeedInput,
    MilkProductionRecord,
)


# Request models for the ration audit API. Range checks on physiological
# values happen in the engine.

class MilkProduction(BaseModel):
    kg_per_day: float = Field(..., description="Milk yield in kg/day")
    fat_percent: float = Field(..., description="Milk fat percentage (0-100)")
    protein_percent: float = Field(..., description="Milk protein percentage (0-100)")

    def to_record(self) -> MilkProductionRecord:
        return MilkProductionRecord(
            kg_per_day=self.kg_per_day,
            fat_percent=self.fat_percent,
            protein_percent=self.protein_percent,
        )


class AnimalProfileRequest(BaseModel):
    name: str = Field(..., description="Profile name, e.g. 'Holstein-Friesian 41kg melk'")
    weight_kg: float = Field(..., description="Body weight in kg")
    parity: int = Field(..., description="Lactation number (1 = first lactation)")
    days_in_milk: int = Field(0, description="Days in milk (0-305)")
    days_pregnant: int = Field(0, description="Days pregnant (0-283)")
    is_lactating: Optional[bool] = Field(None, description="Derived from days in milk when omitted")
    target_vem: Optional[float] = Field(None, description="Static VEM target used without a milk basis")
    target_dve: Optional[float] = Field(None, description="Static DVE target used without a milk basis")
    uses_dynamic_requirements: bool = Field(False, description="Use the dynamic requirement strategy")
    default_milk: Optional[MilkProduction] = Field(None, description="Default milk/fat/protein for the profile")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError('Profile name cannot be empty')
        return v.strip()

    def to_profile(self) -> AnimalProfile:
        return AnimalProfile(
            name=self.name,
            weight_kg=self.weight_kg,
            parity=self.parity,
            days_in_milk=self.days_in_milk,
            days_pregnant=self.days_pregnant,
            is_lactating=self.is_lactating,
            target_vem=self.target_vem,
            target_dve=self.target_dve,
            uses_dynamic_requirements=self.uses_dynamic_requirements,
            default_milk=self.default_milk.to_record() if self.default_milk else None,
        )


class FeedDefinitionRequest(BaseModel):
    name: str = Field(..., description="Catalog feed name, e.g. 'kuil_1_gras'")
    display_name: Optional[str] = None
    basis: str = Field(FEED_BASIS_DRY_MATTER, description="'per kg DS' or 'per kg product'")
    vem: Optional[float] = None
    dve: Optional[float] = Field(None, description="g DVE per unit")
    oeb: Optional[float] = Field(None, description="g OEB per unit")
    sw: Optional[float] = Field(None, description="Structure value per kg DS")
    vw: Optional[float] = Field(None, description="Filling value per kg DS")
    default_ds_percent: float = Field(100.0, description="Default dry matter percentage")
    category: str = Field("concentrate", description="roughage, concentrate, byproduct or mineral")


class FeedLine(BaseModel):
    feed: FeedDefinitionRequest
    amount_kg: float = Field(..., description="As-fed amount in kg/day")
    ds_percent: Optional[float] = Field(None, description="Dry matter percentage override")


class RationAuditRequest(BaseModel):
    animal_profile: AnimalProfileRequest
    milk_production: Optional[MilkProduction] = None
    feeds: List[FeedLine] = Field(default_factory=list)
    is_grazing: bool = False

    def to_inputs(self) -> AuditableCalculationInputs:
        """Engine inputs; lines with amount <= 0 are not fed and are dropped."""
        feed_lines = tuple(
            (feed_definition_from_record(line.feed.model_dump()),
             FeedInput(amount_kg=line.amount_kg, ds_percent=line.ds_percent))
            for line in self.feeds
            if line.amount_kg > 0
        )
        return AuditableCalculationInputs(
            profile=self.animal_profile.to_profile(),
            feeds=feed_lines,
            milk_record=self.milk_production.to_record() if self.milk_production else None,
            is_grazing=self.is_grazing,
        )
