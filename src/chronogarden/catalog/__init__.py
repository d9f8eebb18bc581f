"""Static game content: eras, crops, progression tree, visitors."""

from .loader import CatalogError, build_catalog, default_catalog, load_catalog, load_catalog_string
from .models import (
    AutomationRuleSpec,
    CostCurve,
    CropSpec,
    EffectCurve,
    EraSpec,
    GoalSpec,
    LoreEntry,
    PermanentCost,
    PermanentUpgradeSpec,
    PrestigeTier,
    QuestSpec,
    QuestTrigger,
    ResourceSpec,
    RewardSpec,
    SynergySpec,
    UpgradeSpec,
    VisitorSpec,
    WeatherSpec,
)
from .registry import Catalog

__all__ = [
    "AutomationRuleSpec",
    "Catalog",
    "CatalogError",
    "CostCurve",
    "CropSpec",
    "EffectCurve",
    "EraSpec",
    "GoalSpec",
    "LoreEntry",
    "PermanentCost",
    "PermanentUpgradeSpec",
    "PrestigeTier",
    "QuestSpec",
    "QuestTrigger",
    "ResourceSpec",
    "RewardSpec",
    "SynergySpec",
    "UpgradeSpec",
    "VisitorSpec",
    "WeatherSpec",
    "build_catalog",
    "default_catalog",
    "load_catalog",
    "load_catalog_string",
]
