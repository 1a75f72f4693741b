#!/usr/bin/env python3
"""
Flask web application for the recipe costing workbook.

JSON API over KitchenAssistant: products, recipes, saved menus, menu reports
(economics, purchase order, allergen matrix, production sheets) and backups.
"""

import logging
from datetime import datetime
from typing import Optional

from flask import Flask, jsonify, request

from .. import config
from ..data.migrations import migrate_recipe
from ..data.models import AppSettings, MenuPlan, Recipe
from ..main import KitchenAssistant
from ..product_import import ProductImportError, parse_products_csv, validate_rows

logger = logging.getLogger(__name__)


def _not_found(what: str, item_id: str):
    return jsonify({"success": False, "error": f"{what} {item_id} not found"}), 404


def _server_error(action: str, e: Exception):
    logger.error(f"Error {action}: {e}", exc_info=True)
    return jsonify({"success": False, "error": str(e)}), 500


def _pax_arg(default: Optional[float] = None) -> Optional[float]:
    value = request.args.get("pax")
    if value is None:
        return default
    try:
        return float(value.replace(",", ".", 1))
    except ValueError:
        return default


def create_app(assistant: Optional[KitchenAssistant] = None) -> Flask:
    """
    Build the Flask app.

    Args:
        assistant: Controller to serve (defaults to one on config.DB_DIR)
    """
    app = Flask(__name__)
    app.secret_key = config.FLASK_SECRET_KEY
    app.json.ensure_ascii = False
    assistant = assistant or KitchenAssistant(db_dir=config.DB_DIR)
    app.extensions["kitchen_assistant"] = assistant

    @app.route('/health')
    def health_check():
        """Health check endpoint."""
        return jsonify({"status": "healthy", "timestamp": datetime.now().isoformat()}), 200

    # ==================== Products ====================

    @app.route('/api/products', methods=['GET'])
    def api_list_products():
        try:
            products = assistant.get_products()
            return jsonify({"success": True, "products": [p.to_dict() for p in products]})
        except Exception as e:
            return _server_error("listing products", e)

    @app.route('/api/products', methods=['POST'])
    def api_add_product():
        try:
            product = validate_rows([request.get_json(silent=True)])[0]
        except ProductImportError as e:
            return jsonify({"success": False, "errors": e.errors}), 400
        try:
            assistant.add_product(product)
            return jsonify({"success": True, "product": product.to_dict()}), 201
        except Exception as e:
            return _server_error("adding product", e)

    @app.route('/api/products/<product_id>', methods=['PUT'])
    def api_edit_product(product_id):
        data = dict(request.get_json(silent=True) or {}, id=product_id)
        try:
            product = validate_rows([data])[0]
        except ProductImportError as e:
            return jsonify({"success": False, "errors": e.errors}), 400
        try:
            if not assistant.edit_product(product):
                return _not_found("Product", product_id)
            return jsonify({"success": True, "product": product.to_dict()})
        except Exception as e:
            return _server_error(f"editing product {product_id}", e)

    @app.route('/api/products/<product_id>', methods=['DELETE'])
    def api_delete_product(product_id):
        try:
            if not assistant.delete_product(product_id):
                return _not_found("Product", product_id)
            return jsonify({"success": True})
        except Exception as e:
            return _server_error(f"deleting product {product_id}", e)

    @app.route('/api/products/import', methods=['POST'])
    def api_import_products():
        """Replace the product list from a JSON list or a CSV body."""
        try:
            if request.mimetype == "text/csv":
                delimiter = request.args.get("delimiter", config.CSV_DELIMITER)
                products = parse_products_csv(request.get_data(as_text=True), delimiter=delimiter)
            else:
                data = request.get_json(silent=True)
                if isinstance(data, dict):
                    data = data.get("products")
                if not isinstance(data, list):
                    return jsonify({"success": False, "errors": ["expected a list of products"]}), 400
                products = validate_rows(data)
        except ProductImportError as e:
            return jsonify({"success": False, "errors": e.errors}), 400

        try:
            changed = assistant.import_products(products)
            return jsonify({"success": True, "num_products": len(products), "recipes_updated": changed})
        except Exception as e:
            return _server_error("importing products", e)

    # ==================== Recipes ====================

    @app.route('/api/recipes', methods=['GET'])
    def api_list_recipes():
        try:
            term = request.args.get("q", "")
            recipes = assistant.search_recipes(term) if term else assistant.get_recipes()
            return jsonify({
                "success": True,
                "recipes": [
                    dict(r.to_dict(), costPerPortion=r.cost_per_portion()) for r in recipes
                ],
            })
        except Exception as e:
            return _server_error("listing recipes", e)

    @app.route('/api/recipes', methods=['POST'])
    def api_save_recipe():
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not data.get("name"):
            return jsonify({"success": False, "error": "Recipe needs a name"}), 400
        try:
            teacher_name = assistant.get_settings().teacher_name
            recipe = Recipe.from_dict(migrate_recipe(data, teacher_name))
            recipe.total_cost = recipe.compute_total_cost()
            assistant.save_recipe(recipe)
            return jsonify({"success": True, "recipe": recipe.to_dict()})
        except Exception as e:
            return _server_error("saving recipe", e)

    @app.route('/api/recipes/import', methods=['POST'])
    def api_import_recipe():
        """Add an exported recipe card as a new copy (never overwrites)."""
        try:
            recipe = assistant.import_recipe(request.get_json(silent=True))
        except ValueError as e:
            return jsonify({"success": False, "error": str(e)}), 400
        except Exception as e:
            return _server_error("importing recipe", e)
        return jsonify({"success": True, "recipe": recipe.to_dict()}), 201

    @app.route('/api/recipes/<recipe_id>', methods=['GET'])
    def api_get_recipe(recipe_id):
        try:
            recipe = assistant.get_recipe(recipe_id)
            if recipe is None:
                return _not_found("Recipe", recipe_id)
            return jsonify({"success": True, "recipe": recipe.to_dict(), "allergens": recipe.allergens()})
        except Exception as e:
            return _server_error(f"loading recipe {recipe_id}", e)

    @app.route('/api/recipes/<recipe_id>', methods=['DELETE'])
    def api_delete_recipe(recipe_id):
        try:
            if not assistant.delete_recipe(recipe_id):
                return _not_found("Recipe", recipe_id)
            return jsonify({"success": True})
        except Exception as e:
            return _server_error(f"deleting recipe {recipe_id}", e)

    @app.route('/api/recipes/<recipe_id>/sheet', methods=['GET'])
    def api_recipe_sheet(recipe_id):
        try:
            sheet = assistant.recipe_sheet(recipe_id, pax=_pax_arg())
            if sheet is None:
                return _not_found("Recipe", recipe_id)
            return jsonify({"success": True, "sheet": sheet.to_dict()})
        except Exception as e:
            return _server_error(f"building sheet for {recipe_id}", e)

    # ==================== Menus ====================

    @app.route('/api/menus', methods=['GET'])
    def api_list_menus():
        try:
            return jsonify({"success": True, "menus": [m.to_dict() for m in assistant.get_menus()]})
        except Exception as e:
            return _server_error("listing menus", e)

    @app.route('/api/menus', methods=['POST'])
    def api_save_menu():
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not data.get("title"):
            return jsonify({"success": False, "error": "Menu needs a title"}), 400
        try:
            menu = MenuPlan.from_dict(data)
        except ValueError as e:
            return jsonify({"success": False, "error": str(e)}), 400
        try:
            menu = assistant.save_menu(menu)
            return jsonify({"success": True, "menu": menu.to_dict()})
        except Exception as e:
            return _server_error("saving menu", e)

    @app.route('/api/menus/<menu_id>', methods=['DELETE'])
    def api_delete_menu(menu_id):
        try:
            if not assistant.delete_menu(menu_id):
                return _not_found("Menu", menu_id)
            return jsonify({"success": True})
        except Exception as e:
            return _server_error(f"deleting menu {menu_id}", e)

    @app.route('/api/menus/<menu_id>/report', methods=['GET'])
    def api_menu_report(menu_id):
        try:
            report = assistant.menu_report_for(menu_id)
            if report is None:
                return _not_found("Menu", menu_id)
            return jsonify({"success": True, "report": report.to_dict()})
        except Exception as e:
            return _server_error(f"building report for menu {menu_id}", e)

    @app.route('/api/menu-report', methods=['POST'])
    def api_adhoc_menu_report():
        """Report for an unsaved selection: {"recipeIds": [...], "pax": N}."""
        data = request.get_json(silent=True) or {}
        recipe_ids = data.get("recipeIds") or []
        try:
            pax = float(data.get("pax") or 0)
        except (TypeError, ValueError):
            return jsonify({"success": False, "error": "pax must be a number"}), 400
        try:
            report = assistant.menu_report([str(r) for r in recipe_ids], pax,
                                           title=data.get("title"), date=data.get("date"))
            return jsonify({"success": True, "report": report.to_dict()})
        except Exception as e:
            return _server_error("building menu report", e)

    # ==================== Settings & Backup ====================

    @app.route('/api/settings', methods=['GET'])
    def api_get_settings():
        try:
            return jsonify({"success": True, "settings": assistant.get_settings().to_dict()})
        except Exception as e:
            return _server_error("loading settings", e)

    @app.route('/api/settings', methods=['PUT'])
    def api_update_settings():
        try:
            data = request.get_json(silent=True) or {}
            settings = assistant.update_settings(AppSettings.from_dict(data))
            return jsonify({"success": True, "settings": settings.to_dict()})
        except Exception as e:
            return _server_error("updating settings", e)

    @app.route('/api/backup', methods=['GET'])
    def api_export_backup():
        try:
            return jsonify(assistant.export_backup().to_dict())
        except Exception as e:
            return _server_error("exporting backup", e)

    @app.route('/api/backup', methods=['POST'])
    def api_restore_backup():
        try:
            restored = assistant.restore_backup(request.get_json(silent=True))
        except ValueError as e:
            return jsonify({"success": False, "error": str(e)}), 400
        except Exception as e:
            return _server_error("restoring backup", e)
        return jsonify({"success": True, "num_recipes": len(restored.recipes)})

    return app


if __name__ == '__main__':
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
    create_app().run(
        host='0.0.0.0',
        port=config.PORT,
        debug=config.DEBUG,
    )
