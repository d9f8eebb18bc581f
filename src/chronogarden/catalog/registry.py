"""Indexed, read-only view over every catalog record."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from .models import (
    AutomationRuleSpec,
    CropSpec,
    EraSpec,
    GoalSpec,
    LoreEntry,
    PermanentUpgradeSpec,
    PrestigeTier,
    QuestSpec,
    ResourceSpec,
    SynergySpec,
    UpgradeSpec,
    VisitorSpec,
    WeatherSpec,
)


@dataclass(frozen=True)
class Catalog:
    """Static game content.  Loaded once and shared by every engine."""

    starting_era: str
    resources: Mapping[str, ResourceSpec]
    eras: Mapping[str, EraSpec]
    crops: Mapping[str, CropSpec]
    automation_rules: Mapping[str, AutomationRuleSpec] = field(default_factory=dict)
    upgrades: Mapping[str, UpgradeSpec] = field(default_factory=dict)
    permanent_upgrades: Mapping[str, PermanentUpgradeSpec] = field(default_factory=dict)
    synergies: Mapping[str, SynergySpec] = field(default_factory=dict)
    goals: Mapping[str, GoalSpec] = field(default_factory=dict)
    quests: Mapping[str, QuestSpec] = field(default_factory=dict)
    visitors: Mapping[str, VisitorSpec] = field(default_factory=dict)
    weather: Mapping[str, WeatherSpec] = field(default_factory=dict)
    lore: Mapping[str, LoreEntry] = field(default_factory=dict)
    prestige_tiers: Tuple[PrestigeTier, ...] = ()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def era(self, era_id: str) -> Optional[EraSpec]:
        return self.eras.get(era_id)

    def crop(self, crop_id: str) -> Optional[CropSpec]:
        return self.crops.get(crop_id)

    def crops_for_era(self, era_id: str) -> List[CropSpec]:
        era = self.eras.get(era_id)
        if era is None:
            return []
        return [self.crops[crop_id] for crop_id in era.crop_ids if crop_id in self.crops]

    def upgrades_for(self, era_id: str, applies_to: str) -> List[UpgradeSpec]:
        return [
            upgrade
            for upgrade in self.upgrades.values()
            if upgrade.era_id == era_id and upgrade.applies_to == applies_to
        ]

    def permanent_upgrades_for(self, applies_to: str) -> List[PermanentUpgradeSpec]:
        return [upgrade for upgrade in self.permanent_upgrades.values() if upgrade.applies_to == applies_to]

    def synergies_for(self, era_id: str, applies_to: str) -> List[SynergySpec]:
        return [
            synergy
            for synergy in self.synergies.values()
            if synergy.target_era_id == era_id and synergy.applies_to == applies_to
        ]

    def quests_for_visitor(self, visitor_id: str) -> List[QuestSpec]:
        visitor = self.visitors.get(visitor_id)
        if visitor is None:
            return []
        return [self.quests[quest_id] for quest_id in visitor.quest_ids if quest_id in self.quests]

    def rare_seed_candidates(self) -> List[str]:
        """Crop ids that may be granted as rare seeds, in catalog order."""

        return [crop.crop_id for crop in self.crops.values() if crop.rare_seed_eligible]

    def is_tradable(self, item_type: str, item_id: str) -> bool:
        """Whether the market accepts listings of this seed or resource."""

        if item_type == "seed":
            crop = self.crops.get(item_id)
            return crop is not None and crop.tradable_seed
        resource = self.resources.get(item_id)
        return resource is not None and resource.tradable

    def initial_resources(self) -> Dict[str, float]:
        return {
            resource_id: float(spec.initial_amount)
            for resource_id, spec in self.resources.items()
            if spec.initial_amount
        }

    def synergy_stat_names(self) -> List[str]:
        return sorted({f"cropsHarvested{era_id}" for era_id in self.eras})

    def prestige_tier(self, prestige_count: int) -> Optional[PrestigeTier]:
        current: Optional[PrestigeTier] = None
        for tier in sorted(self.prestige_tiers, key=lambda t: t.min_prestige):
            if prestige_count >= tier.min_prestige:
                current = tier
        return current


__all__ = ["Catalog"]
