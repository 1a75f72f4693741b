"""
Escandallo - recipe costing workbook for culinary schools.

Core engines: unit conversion and quantity handling, product sync and menu
aggregation (economics, purchase order, allergen matrix).
"""

from escandallo.quantities import convert_unit, format_quantity, parse_quantity
from escandallo.product_sync import sync_recipes_with_products
from escandallo.menu_engine import (
    build_allergen_matrix,
    build_menu_report,
    build_purchase_order,
    compute_economics,
    resolve_menu_recipes,
)

__version__ = "1.0.0"

__all__ = [
    "convert_unit",
    "format_quantity",
    "parse_quantity",
    "sync_recipes_with_products",
    "build_allergen_matrix",
    "build_menu_report",
    "build_purchase_order",
    "compute_economics",
    "resolve_menu_recipes",
]
