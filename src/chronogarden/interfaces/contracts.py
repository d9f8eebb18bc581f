"""Canonical schema contracts for catalog rows, snapshots and collaborator records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class PayloadSchema:
    """Minimal structural schema for validating payload dictionaries."""

    required: Mapping[str, tuple[type, ...]]
    optional: Mapping[str, tuple[type, ...]] = field(default_factory=dict)

    def validate(self, payload: Mapping[str, Any]) -> None:
        if not isinstance(payload, Mapping):
            raise TypeError(f"Payload has type {type(payload)!r}, expected a mapping")
        missing = [key for key in self.required if key not in payload]
        if missing:
            raise ValueError(f"Missing required fields: {missing}")
        for key, expected in self.required.items():
            if not isinstance(payload[key], expected):
                raise TypeError(f"Field '{key}' has type {type(payload[key])!r}, expected {expected!r}")
        for key, expected in self.optional.items():
            if key in payload and payload[key] is not None and not isinstance(payload[key], expected):
                raise TypeError(f"Field '{key}' has type {type(payload[key])!r}, expected {expected!r}")


NUMERIC = (int, float)
TEXT = (str,)


CATALOG_SCHEMAS: Dict[str, PayloadSchema] = {
    "resources": PayloadSchema(
        required={"id": TEXT, "name": TEXT},
        optional={"description": TEXT, "initial_amount": NUMERIC, "tradable": (bool,)},
    ),
    "eras": PayloadSchema(
        required={"id": TEXT, "name": TEXT, "unlock_cost": NUMERIC, "crops": (list,)},
        optional={"description": TEXT, "special_mechanic": TEXT, "resources": (list,)},
    ),
    "crops": PayloadSchema(
        required={"id": TEXT, "name": TEXT, "growth_time": NUMERIC, "cost": (Mapping,), "yield": (Mapping,)},
        optional={
            "description": TEXT,
            "unlock_cost": NUMERIC,
            "rare_seed_eligible": (bool,),
            "tradable_seed": (bool,),
        },
    ),
    "automation_rules": PayloadSchema(
        required={"id": TEXT, "name": TEXT, "cost": (Mapping,)},
        optional={"description": TEXT, "effect": TEXT, "era": TEXT},
    ),
    "upgrades": PayloadSchema(
        required={
            "id": TEXT,
            "name": TEXT,
            "era": TEXT,
            "applies_to": TEXT,
            "max_level": (int,),
            "cost": (Mapping,),
            "effect": (Mapping,),
        },
        optional={"description": TEXT, "crop": TEXT},
    ),
    "permanent_upgrades": PayloadSchema(
        required={
            "id": TEXT,
            "name": TEXT,
            "applies_to": TEXT,
            "max_level": (int,),
            "chrono_energy": (Mapping,),
            "rare_seeds": (Mapping,),
            "effect": (Mapping,),
        },
        optional={"description": TEXT},
    ),
    "synergies": PayloadSchema(
        required={
            "id": TEXT,
            "name": TEXT,
            "stat": TEXT,
            "threshold": NUMERIC,
            "effect_per_level": NUMERIC,
            "applies_to": TEXT,
            "target_era": TEXT,
        },
        optional={"description": TEXT, "max_levels": (int,)},
    ),
    "goals": PayloadSchema(
        required={"id": TEXT, "name": TEXT, "stat": TEXT, "target": NUMERIC, "reward": (Mapping,)},
        optional={"description": TEXT},
    ),
    "reward": PayloadSchema(
        required={"type": TEXT},
        optional={"amount": NUMERIC, "resource_id": TEXT},
    ),
    "quests": PayloadSchema(
        required={"id": TEXT, "title": TEXT, "target_amount": NUMERIC, "trigger": (Mapping,), "reward": (Mapping,)},
        optional={"description": TEXT, "duration_minutes": NUMERIC, "dialogue": (Mapping,)},
    ),
    "visitors": PayloadSchema(
        required={"id": TEXT, "name": TEXT, "era": TEXT, "spawn_chance": NUMERIC},
        optional={"quests": (list,), "description": TEXT},
    ),
    "weather": PayloadSchema(required={"id": TEXT, "name": TEXT}, optional={"description": TEXT}),
    "lore": PayloadSchema(required={"id": TEXT, "title": TEXT, "text": TEXT, "stat": TEXT, "threshold": NUMERIC}),
    "prestige_tiers": PayloadSchema(required={"id": TEXT, "name": TEXT, "min_prestige": (int,)}),
}


SNAPSHOT_SCHEMA = PayloadSchema(
    required={
        "player_name": TEXT,
        "garden_name": TEXT,
        "current_era": TEXT,
        "planted_crops": (list,),
    },
    optional={
        "schema_version": TEXT,
        "unlocked_eras": (list,),
        "chrono_energy": NUMERIC,
        "resources": (Mapping,),
        "automation_rules": (list,),
        "rare_seeds": (list,),
        "soil_quality": NUMERIC,
        "upgrade_levels": (Mapping,),
        "permanent_upgrade_levels": (Mapping,),
        "goal_status": (Mapping,),
        "synergy_stats": (Mapping,),
        "unlocked_lore_ids": (list,),
        "current_visitor_id": TEXT,
        "active_quest": (Mapping,),
        "completed_quests": (list,),
        "prestige_count": (int,),
        "total_crops_harvested": NUMERIC,
        "total_chrono_energy_earned": NUMERIC,
        "current_weather_id": TEXT,
        "advisor_suggestion": TEXT,
        "last_tick": NUMERIC,
        "last_visitor_check": NUMERIC,
        "next_instance_seq": (int,),
    },
)

PLANTED_CROP_SCHEMA = PayloadSchema(
    required={"crop_id": TEXT, "era_id": TEXT, "planted_at": NUMERIC},
    optional={"instance_id": TEXT},
)

GARDEN_CODE_SCHEMA = PayloadSchema(
    required={"player_name": TEXT, "garden_name": TEXT, "current_era": TEXT, "planted_crops": (list,)},
)

LEADERBOARD_RECORD_SCHEMA = PayloadSchema(
    required={
        "player_id": TEXT,
        "name": TEXT,
        "total_crops_harvested": NUMERIC,
        "prestige_count": (int,),
        "total_chrono_energy_earned": NUMERIC,
    }
)

MARKET_LISTING_SCHEMA = PayloadSchema(
    required={
        "item_type": TEXT,
        "item_id": TEXT,
        "quantity": NUMERIC,
        "price": NUMERIC,
        "seller_name": TEXT,
        "timestamp": NUMERIC,
    },
    optional={"listing_id": TEXT, "item_name": TEXT},
)


def validate_catalog_row(section: str, payload: Mapping[str, Any]) -> None:
    schema = CATALOG_SCHEMAS.get(section)
    if schema is None:
        return
    schema.validate(payload)


__all__ = [
    "CATALOG_SCHEMAS",
    "GARDEN_CODE_SCHEMA",
    "LEADERBOARD_RECORD_SCHEMA",
    "MARKET_LISTING_SCHEMA",
    "NUMERIC",
    "PLANTED_CROP_SCHEMA",
    "PayloadSchema",
    "SNAPSHOT_SCHEMA",
    "validate_catalog_row",
]
