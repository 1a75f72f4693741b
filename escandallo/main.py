#!/usr/bin/env python3
"""
Main orchestrator for the recipe costing workbook.

KitchenAssistant owns the product, recipe and menu collections and calls the
pure engines (product sync, menu aggregation) after each change. Every
mutation computes the new collection first and then replaces the stored one.
"""

import argparse
import json
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from . import config
from .data.database import DatabaseInterface
from .data.migrations import migrate_recipe
from .data.models import AppBackup, AppSettings, MenuPlan, Product, Recipe
from .menu_engine import (
    MenuReport,
    ProductionSheet,
    build_menu_report,
    production_sheet,
    resolve_menu_recipes,
    search_recipes,
)
from .product_import import ProductImportError, parse_products_csv, parse_products_json
from .product_sync import sync_recipes_with_products
from .sheets import format_menu_report, format_recipe_sheet

logger = logging.getLogger(__name__)


class KitchenAssistant:
    """Controller for products, recipes, menus and their derived documents."""

    def __init__(self, db_dir: str = config.DB_DIR):
        """
        Initialize the assistant.

        Args:
            db_dir: Directory containing the database
        """
        self.db = DatabaseInterface(db_dir=db_dir)
        logger.info(f"Kitchen assistant initialized (db={self.db.db_path})")

    # ==================== Products ====================

    def get_products(self) -> List[Product]:
        return self.db.get_products()

    def add_product(self, product: Product) -> Product:
        """Add a product at the top of the list (recipes are not re-synced)."""
        if not product.id:
            product.id = f"p-{uuid.uuid4().hex[:12]}"
        self.db.save_products([product] + self.db.get_products())
        logger.info(f"Added product {product.id} ({product.name})")
        return product

    def edit_product(self, product: Product) -> bool:
        """
        Replace a product by id and re-sync every recipe against the new list.

        Returns:
            True if the product existed
        """
        products = self.db.get_products()
        if not any(p.id == product.id for p in products):
            return False

        updated = [product if p.id == product.id else p for p in products]
        self.db.save_products(updated)
        self._sync_recipes(updated)
        logger.info(f"Edited product {product.id} ({product.name})")
        return True

    def delete_product(self, product_id: str) -> bool:
        """Delete a product; ingredient caches keep their last values."""
        products = self.db.get_products()
        remaining = [p for p in products if p.id != product_id]
        if len(remaining) == len(products):
            return False
        self.db.save_products(remaining)
        logger.info(f"Deleted product {product_id}")
        return True

    def import_products(self, products: Sequence[Product]) -> int:
        """
        Replace the whole product list and re-sync every recipe.

        Returns:
            Number of recipes whose costs changed
        """
        products = list(products)
        self.db.save_products(products)
        changed = self._sync_recipes(products)
        logger.info(f"Imported {len(products)} products ({changed} recipes updated)")
        return changed

    def import_products_file(self, path: str, delimiter: str = config.CSV_DELIMITER) -> int:
        """Import a .json or .csv price list from disk."""
        text = Path(path).read_text(encoding="utf-8-sig")
        if path.lower().endswith(".csv"):
            products = parse_products_csv(text, delimiter=delimiter)
        else:
            products = parse_products_json(text)
        return self.import_products(products)

    def _sync_recipes(self, products: Sequence[Product]) -> int:
        recipes = self.db.get_recipes()
        synced = sync_recipes_with_products(recipes, products)
        changed = sum(1 for new, old in zip(synced, recipes) if new is not old)
        if changed:
            self.db.save_recipes(synced)
        return changed

    # ==================== Recipes ====================

    def get_recipes(self) -> List[Recipe]:
        return self.db.get_recipes()

    def get_recipe(self, recipe_id: str) -> Optional[Recipe]:
        for recipe in self.db.get_recipes():
            if recipe.id == recipe_id:
                return recipe
        return None

    def search_recipes(self, term: str) -> List[Recipe]:
        return search_recipes(self.db.get_recipes(), term)

    def save_recipe(self, recipe: Recipe) -> Recipe:
        """Insert or replace a recipe by id (new recipes go first)."""
        if not recipe.id:
            recipe.id = f"r-{uuid.uuid4().hex[:12]}"

        recipes = self.db.get_recipes()
        if any(r.id == recipe.id for r in recipes):
            recipes = [recipe if r.id == recipe.id else r for r in recipes]
        else:
            recipes = [recipe] + recipes
        self.db.save_recipes(recipes)
        logger.info(f"Saved recipe {recipe.id} ({recipe.name})")
        return recipe

    def import_recipe(self, data: Dict) -> Recipe:
        """
        Import a recipe card as a new copy at the top of the collection.

        The record is migrated and always gets a fresh id, so importing a
        card exported from this workbook never overwrites the original.

        Raises:
            ValueError: If the payload is not a recipe with a name
        """
        if not isinstance(data, dict) or not data.get("name"):
            raise ValueError("Recipe file must be a JSON object with a 'name'")

        teacher_name = self.db.get_settings().teacher_name
        recipe = Recipe.from_dict(migrate_recipe(data, teacher_name))
        recipe.id = f"r-{uuid.uuid4().hex[:12]}"
        recipe.total_cost = recipe.compute_total_cost()

        self.db.save_recipes([recipe] + self.db.get_recipes())
        logger.info(f"Imported recipe {recipe.id} ({recipe.name}) from card {data.get('id')}")
        return recipe

    def import_recipe_file(self, path: str) -> Recipe:
        """Import a recipe card from a .json file."""
        data = json.loads(Path(path).read_text(encoding="utf-8-sig"))
        return self.import_recipe(data)

    def delete_recipe(self, recipe_id: str) -> bool:
        """Delete a recipe; menus referencing it simply stop resolving it."""
        recipes = self.db.get_recipes()
        remaining = [r for r in recipes if r.id != recipe_id]
        if len(remaining) == len(recipes):
            return False
        self.db.save_recipes(remaining)
        logger.info(f"Deleted recipe {recipe_id}")
        return True

    def recipe_sheet(self, recipe_id: str, pax: Optional[float] = None) -> Optional[ProductionSheet]:
        """Production sheet for one recipe (base yield when pax is not given)."""
        recipe = self.get_recipe(recipe_id)
        if recipe is None:
            return None
        return production_sheet(recipe, pax or recipe.yield_quantity)

    # ==================== Menus ====================

    def get_menus(self) -> List[MenuPlan]:
        return self.db.get_menus()

    def get_menu(self, menu_id: str) -> Optional[MenuPlan]:
        for menu in self.db.get_menus():
            if menu.id == menu_id:
                return menu
        return None

    def save_menu(self, menu: MenuPlan) -> MenuPlan:
        """
        Save a menu: a new id when it has none, otherwise overwrite in place.

        Returns:
            The saved menu with id and last_modified set
        """
        if not menu.id:
            menu.id = f"menu-{uuid.uuid4().hex[:12]}"
        menu.last_modified = datetime.now()

        menus = self.db.get_menus()
        index = next((i for i, m in enumerate(menus) if m.id == menu.id), None)
        if index is None:
            menus.insert(0, menu)
        else:
            menus[index] = menu
        self.db.save_menus(menus)
        logger.info(f"Saved menu {menu.id} ({menu.title}, {len(menu.recipe_ids)} recipes)")
        return menu

    def delete_menu(self, menu_id: str) -> bool:
        menus = self.db.get_menus()
        remaining = [m for m in menus if m.id != menu_id]
        if len(remaining) == len(menus):
            return False
        self.db.save_menus(remaining)
        logger.info(f"Deleted menu {menu_id}")
        return True

    def load_menu_recipes(self, menu_id: str) -> Optional[List[Recipe]]:
        """Live recipes of a saved menu (deleted recipes dropped)."""
        menu = self.get_menu(menu_id)
        if menu is None:
            return None
        return resolve_menu_recipes(menu, self.db.get_recipes())

    def menu_report(self, recipe_ids: Sequence[str], pax: float,
                    title: Optional[str] = None, date: Optional[str] = None) -> MenuReport:
        """Economics, purchase order, allergen matrix and production sheets for a selection."""
        selection = MenuPlan(id="", title=title or "", date=date or "", pax=pax,
                             recipe_ids=list(recipe_ids))
        recipes = resolve_menu_recipes(selection, self.db.get_recipes())
        return build_menu_report(recipes, pax, self.db.get_products(), title=title, date=date)

    def menu_report_for(self, menu_id: str) -> Optional[MenuReport]:
        """Report for a saved menu at its own pax."""
        menu = self.get_menu(menu_id)
        if menu is None:
            return None
        return self.menu_report(menu.recipe_ids, menu.pax, title=menu.title, date=menu.date)

    # ==================== Settings & Backup ====================

    def get_settings(self) -> AppSettings:
        return self.db.get_settings()

    def update_settings(self, settings: AppSettings) -> AppSettings:
        settings.ensure_defaults()
        self.db.save_settings(settings)
        return settings

    def export_backup(self) -> AppBackup:
        """Snapshot of every collection."""
        return AppBackup(
            recipes=self.db.get_recipes(),
            settings=self.db.get_settings(),
            product_database=self.db.get_products(),
            saved_menus=self.db.get_menus(),
        )

    def restore_backup(self, data: Dict) -> AppBackup:
        """
        Replace collections from a backup dictionary.

        Products and menus are only replaced when present in the backup.

        Raises:
            ValueError: If the payload has no recipe list
        """
        if not isinstance(data, dict) or not isinstance(data.get("recipes"), list):
            raise ValueError("Backup must contain a 'recipes' list")

        settings = AppSettings.from_dict(data.get("settings") or {})
        settings.ensure_defaults()
        recipes = [
            Recipe.from_dict(migrate_recipe(raw, settings.teacher_name))
            for raw in data["recipes"]
        ]
        products = None
        if data.get("productDatabase") is not None:
            products = [Product.from_dict(p) for p in data["productDatabase"]]
        menus = None
        if data.get("savedMenus") is not None:
            menus = [MenuPlan.from_dict(m) for m in data["savedMenus"]]

        self.db.save_recipes(recipes)
        self.db.save_settings(settings)
        if products is not None:
            self.db.save_products(products)
        if menus is not None:
            self.db.save_menus(menus)

        logger.info(
            f"Restored backup: {len(recipes)} recipes, "
            f"{len(products) if products is not None else 'no'} products, "
            f"{len(menus) if menus is not None else 'no'} menus"
        )
        return AppBackup(recipes=recipes, settings=settings,
                         product_database=products, saved_menus=menus)


def main(argv: Optional[Sequence[str]] = None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Recipe costing workbook (escandallos)")
    parser.add_argument(
        "command",
        choices=["import-products", "import-recipe", "report", "menu-report", "sheet",
                 "export-backup", "restore-backup"],
        help="Command to run",
    )
    parser.add_argument(
        "file",
        nargs="?",
        help="Input/output file for import-products, import-recipe, export-backup and restore-backup",
    )
    parser.add_argument(
        "--recipes",
        nargs="+",
        default=[],
        help="Recipe IDs for 'report'",
    )
    parser.add_argument(
        "--pax",
        type=float,
        help="Number of covers",
    )
    parser.add_argument(
        "--menu-id",
        type=str,
        help="Saved menu ID for 'menu-report'",
    )
    parser.add_argument(
        "--recipe-id",
        type=str,
        help="Recipe ID for 'sheet'",
    )
    parser.add_argument(
        "--db-dir",
        type=str,
        default=config.DB_DIR,
        help=f"Database directory (default: {config.DB_DIR})",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)

    assistant = KitchenAssistant(db_dir=args.db_dir)

    if args.command in ("import-products", "import-recipe", "export-backup", "restore-backup") and not args.file:
        print(f"❌ Error: a file path is required for '{args.command}'")
        return 1

    if args.command == "import-products":
        try:
            changed = assistant.import_products_file(args.file)
        except ProductImportError as e:
            print("❌ Import rejected:")
            for error in e.errors:
                print(f"   • {error}")
            return 1
        print(f"✓ Products imported ({changed} recipes updated)")

    elif args.command == "import-recipe":
        try:
            recipe = assistant.import_recipe_file(args.file)
        except ValueError as e:
            print(f"❌ Invalid recipe file: {e}")
            return 1
        print(f"✓ Recipe imported as {recipe.id} ({recipe.name})")

    elif args.command == "report":
        if not args.recipes or not args.pax:
            print("❌ Error: --recipes and --pax required for 'report' command")
            return 1
        report = assistant.menu_report(args.recipes, args.pax)
        print(format_menu_report(report))

    elif args.command == "menu-report":
        if not args.menu_id:
            print("❌ Error: --menu-id required for 'menu-report' command")
            return 1
        report = assistant.menu_report_for(args.menu_id)
        if report is None:
            print(f"❌ Error: menu {args.menu_id} not found")
            return 1
        print(format_menu_report(report))

    elif args.command == "sheet":
        recipe = assistant.get_recipe(args.recipe_id) if args.recipe_id else None
        if recipe is None:
            print("❌ Error: --recipe-id of an existing recipe required for 'sheet' command")
            return 1
        print(format_recipe_sheet(recipe, pax=args.pax, settings=assistant.get_settings()))

    elif args.command == "export-backup":
        backup = assistant.export_backup()
        Path(args.file).write_text(
            json.dumps(backup.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8"
        )
        print(f"✓ Backup written to {args.file}")

    elif args.command == "restore-backup":
        data = json.loads(Path(args.file).read_text(encoding="utf-8"))
        restored = assistant.restore_backup(data)
        print(f"✓ Backup restored ({len(restored.recipes)} recipes)")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
