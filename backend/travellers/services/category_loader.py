"""Service to load story categories from YAML into the database."""
import logging
from pathlib import Path

import yaml
from sqlalchemy.orm import Session

from travellers.config import get_settings
from travellers.models.category import Category

logger = logging.getLogger(__name__)


def load_categories(db: Session, categories_file: Path | None = None) -> list[Category]:
    """Upsert categories listed in the YAML file.

    Returns the list of categories named in the file.
    """
    categories_file = categories_file or get_settings().categories_file
    if not categories_file.exists():
        logger.warning(f"Categories file not found: {categories_file}")
        return []

    with open(categories_file, "r") as f:
        data = yaml.safe_load(f) or {}

    loaded = []
    seen = set()
    for raw_name in data.get("categories", []):
        name = str(raw_name).strip()
        if not name or name in seen:
            continue
        seen.add(name)

        existing = db.query(Category).filter(Category.name == name).first()
        if existing:
            loaded.append(existing)
            continue

        category = Category(name=name)
        db.add(category)
        loaded.append(category)
        logger.debug(f"Created category: {name}")

    db.commit()
    logger.info(f"Loaded {len(loaded)} categories")
    return loaded
