"""
Load-time adapter for recipe records saved by older versions of the app.

Historical shapes handled:
- sub-recipes with a single ``photo`` instead of a ``photos`` list
- ``category`` stored as a plain string
- records from before sub-recipes existed (top-level ``ingredients``,
  ``instructions`` and ``photo``)
- missing ``creator``, ``platingInstructions`` or ``serviceDetails``

The rest of the package only ever sees current-schema records.
"""

import logging
from typing import Dict, List

from .models import ServiceDetails

logger = logging.getLogger(__name__)

LEGACY_SUB_RECIPE_ID = "legacy-1"
LEGACY_SUB_RECIPE_NAME = "Elaboración Principal"


def _migrate_sub_recipe(sub: Dict) -> Dict:
    if "photo" in sub and "photos" not in sub:
        migrated = {k: v for k, v in sub.items() if k != "photo"}
        migrated["photos"] = [sub["photo"]] if sub["photo"] else []
        return migrated
    return sub


def needs_migration(raw: Dict) -> bool:
    """Check whether a stored recipe record predates the current schema."""
    subs: List[Dict] = raw.get("subRecipes") or []
    if not subs:
        return True
    if any("photo" in sub and "photos" not in sub for sub in subs):
        return True
    return not raw.get("serviceDetails")


def migrate_recipe(raw: Dict, teacher_name: str = "") -> Dict:
    """
    Bring a stored recipe record up to the current schema.

    Args:
        raw: Recipe dictionary as stored
        teacher_name: Creator to assign when the record has none

    Returns:
        Current-schema dictionary; the same object when already current
    """
    if not needs_migration(raw):
        return raw

    subs = [_migrate_sub_recipe(sub) for sub in raw.get("subRecipes") or []]
    if not subs:
        subs = [{
            "id": LEGACY_SUB_RECIPE_ID,
            "name": LEGACY_SUB_RECIPE_NAME,
            "ingredients": raw.get("ingredients") or [],
            "instructions": raw.get("instructions") or "",
            "photos": [raw["photo"]] if raw.get("photo") else [],
        }]

    category = raw.get("category")
    if isinstance(category, list):
        categories = category
    else:
        categories = [category] if category else []

    migrated = {
        **raw,
        "category": categories,
        "creator": raw.get("creator") or teacher_name,
        "subRecipes": subs,
        "platingInstructions": raw.get("platingInstructions") or "",
        "serviceDetails": raw.get("serviceDetails") or ServiceDetails().to_dict(),
    }
    logger.debug(f"Migrated legacy recipe {raw.get('id')} ({raw.get('name')})")
    return migrated
