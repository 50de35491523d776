"""Sample catalog loader."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger

from .context import AppContext
from .errors import ValidationError

DEFAULT_SEED_PATH = Path(__file__).parent.parent / "config" / "seed.yaml"


def load_seed(path: Optional[Path] = None) -> Dict[str, Any]:
    path = path or DEFAULT_SEED_PATH
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def seed_catalog(ctx: AppContext, data: Dict[str, Any], force: bool = False) -> Dict[str, int]:
    """Insert sample vehicles and provider links.

    Collections that already hold records are left alone unless ``force``.

    Returns:
        Number of records inserted per collection
    """
    inserted = {"vehicles": 0, "provider_links": 0}

    if force or ctx.db.count("vehicles") == 0:
        for vehicle in data.get("vehicles", []):
            try:
                ctx.listings.create_vehicle(vehicle)
                inserted["vehicles"] += 1
            except ValidationError as e:
                logger.warning(f"Skipping seed vehicle {vehicle.get('make')} {vehicle.get('model')}: {e}")
    else:
        logger.info("Vehicles already present, skipping")

    if force or ctx.db.count("provider_links") == 0:
        for link in data.get("provider_links", []):
            try:
                ctx.providers.save_provider_link(None, link)
                inserted["provider_links"] += 1
            except ValidationError as e:
                logger.warning(f"Skipping seed provider link {link.get('name')}: {e}")
    else:
        logger.info("Provider links already present, skipping")

    logger.info(
        f"Seeded {inserted['vehicles']} vehicles and {inserted['provider_links']} provider links"
    )
    return inserted
