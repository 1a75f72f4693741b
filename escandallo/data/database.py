"""
Database interface for the recipe costing workbook.

Stores each collection (products, recipes, saved menus, settings) as one JSON
document in a single SQLite file. Collections are read and replaced
wholesale; every save is one transaction, so a read after a save always sees
the complete new collection.
"""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

from .. import config
from .migrations import migrate_recipe
from .models import AppSettings, MenuPlan, Product, Recipe

logger = logging.getLogger(__name__)

RECIPES_KEY = "recipes"
PRODUCTS_KEY = "productDatabase"
MENUS_KEY = "savedMenus"
SETTINGS_KEY = "appSettings"

# Starter price list for an empty workbook
INITIAL_PRODUCT_DATABASE: List[Product] = [
    Product(id="p-harina", name="HARINA", unit="kg", price_per_unit=1.20,
            category="SECOS Y ULTRAMARINOS", allergens=["Gluten"]),
    Product(id="p-leche", name="LECHE ENTERA", unit="l", price_per_unit=0.95,
            category="LÁCTEOS Y HUEVOS", allergens=["Lácteos"]),
    Product(id="p-huevo", name="HUEVO", unit="ud", price_per_unit=0.25,
            category="LÁCTEOS Y HUEVOS", allergens=["Huevos"]),
    Product(id="p-mantequilla", name="MANTEQUILLA", unit="kg", price_per_unit=9.50,
            category="LÁCTEOS Y HUEVOS", allergens=["Lácteos"]),
    Product(id="p-azucar", name="AZÚCAR", unit="kg", price_per_unit=1.10,
            category="SECOS Y ULTRAMARINOS", allergens=[]),
    Product(id="p-aceite", name="ACEITE DE OLIVA VIRGEN EXTRA", unit="l", price_per_unit=8.90,
            category="ACEITES Y GRASAS", allergens=[]),
    Product(id="p-tomate", name="TOMATE", unit="kg", price_per_unit=2.10,
            category="VERDURAS", allergens=[]),
    Product(id="p-cebolla", name="CEBOLLA", unit="kg", price_per_unit=1.05,
            category="VERDURAS", allergens=[]),
    Product(id="p-sal", name="SAL", unit="kg", price_per_unit=0.40,
            category="ESPECIAS Y CONDIMENTOS", allergens=[]),
    Product(id="p-merluza", name="MERLUZA", unit="kg", price_per_unit=14.00,
            category="PESCADOS Y MARISCOS", allergens=["Pescado"]),
]


class DatabaseInterface:
    """Interface for the workbook's SQLite collection store."""

    def __init__(self, db_dir: str = "data"):
        """
        Initialize database interface.

        Args:
            db_dir: Directory containing the database file
        """
        self.db_dir = Path(db_dir)
        self.db_dir.mkdir(parents=True, exist_ok=True)
        self.db_path = self.db_dir / config.DB_FILENAME

        self._init_database()

    def _init_database(self):
        """Initialize database schema."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS app_state (
                    key TEXT PRIMARY KEY,
                    value_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()

    # ==================== Raw Collection Access ====================

    def _read(self, key: str) -> Optional[Any]:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT value_json FROM app_state WHERE key = ?", (key,))
            row = cursor.fetchone()
            return json.loads(row[0]) if row else None

    def _write(self, key: str, value: Any):
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR REPLACE INTO app_state (key, value_json, updated_at)
                VALUES (?, ?, ?)
                """,
                (key, json.dumps(value, ensure_ascii=False), datetime.now().isoformat()),
            )
            conn.commit()

    # ==================== Products ====================

    def get_products(self) -> List[Product]:
        """Get the product list, seeding the starter list on first use."""
        data = self._read(PRODUCTS_KEY)
        if data is None:
            logger.info(f"Seeding product database with {len(INITIAL_PRODUCT_DATABASE)} products")
            self.save_products(INITIAL_PRODUCT_DATABASE)
            return [Product.from_dict(p.to_dict()) for p in INITIAL_PRODUCT_DATABASE]
        return [Product.from_dict(p) for p in data]

    def save_products(self, products: List[Product]):
        """Replace the product list."""
        self._write(PRODUCTS_KEY, [p.to_dict() for p in products])
        logger.debug(f"Saved {len(products)} products")

    # ==================== Recipes ====================

    def get_recipes(self, teacher_name: Optional[str] = None) -> List[Recipe]:
        """
        Get all recipes, migrating legacy records on the way in.

        Args:
            teacher_name: Creator assigned to legacy records without one
                (defaults to the stored settings' teacher name)
        """
        data = self._read(RECIPES_KEY) or []
        if teacher_name is None:
            teacher_name = self.get_settings().teacher_name
        return [Recipe.from_dict(migrate_recipe(raw, teacher_name)) for raw in data]

    def save_recipes(self, recipes: List[Recipe]):
        """Replace the recipe collection."""
        self._write(RECIPES_KEY, [r.to_dict() for r in recipes])
        logger.debug(f"Saved {len(recipes)} recipes")

    # ==================== Menus ====================

    def get_menus(self) -> List[MenuPlan]:
        """Get all saved menus, most recent first as stored."""
        return [MenuPlan.from_dict(m) for m in self._read(MENUS_KEY) or []]

    def save_menus(self, menus: List[MenuPlan]):
        """Replace the saved menu collection."""
        self._write(MENUS_KEY, [m.to_dict() for m in menus])
        logger.debug(f"Saved {len(menus)} menus")

    # ==================== Settings ====================

    def get_settings(self) -> AppSettings:
        """Get workbook settings, with default categories and families filled in."""
        data = self._read(SETTINGS_KEY)
        if data is None:
            settings = AppSettings(
                teacher_name=config.DEFAULT_TEACHER_NAME,
                institute_name=config.DEFAULT_INSTITUTE_NAME,
            )
        else:
            settings = AppSettings.from_dict(data)
        if settings.ensure_defaults() and data is not None:
            self.save_settings(settings)
        return settings

    def save_settings(self, settings: AppSettings):
        """Replace workbook settings."""
        self._write(SETTINGS_KEY, settings.to_dict())
