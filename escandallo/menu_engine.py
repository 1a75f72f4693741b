"""
Menu aggregation: economics, purchase order and allergen matrix.

Every view is derived from (selected recipes, pax, product list) and is
recomputed from scratch; nothing here writes to the collections. Each
recipe scales independently from its own base yield to the menu's pax.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .data.models import ALLERGEN_LIST, UNKNOWN_FAMILY, MenuPlan, Product, Recipe
from .product_sync import find_product_exact
from .quantities import pax_ratio, parse_quantity, scale_quantity_text

logger = logging.getLogger(__name__)


@dataclass
class EconomicsLine:
    """Cost contribution of one recipe to the menu."""
    recipe_id: str
    recipe_name: str
    cost_per_cover: float
    contribution: float  # cost_per_cover * pax

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "recipeId": self.recipe_id,
            "recipeName": self.recipe_name,
            "costPerCover": self.cost_per_cover,
            "contribution": self.contribution,
        }


@dataclass
class MenuEconomics:
    """Menu cost scaled to pax."""
    pax: float
    lines: List[EconomicsLine] = field(default_factory=list)
    total: float = 0.0
    per_pax: float = 0.0

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "pax": self.pax,
            "lines": [line.to_dict() for line in self.lines],
            "total": self.total,
            "perPax": self.per_pax,
        }


@dataclass
class PurchaseLine:
    """Aggregated demand for one ingredient within a family."""
    name: str
    quantity: float
    unit: str
    cost: float

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "cost": self.cost,
        }


@dataclass
class PurchaseFamily:
    """Purchase-order section for one product family."""
    family: str
    items: List[PurchaseLine] = field(default_factory=list)

    @property
    def total_cost(self) -> float:
        return sum(item.cost for item in self.items)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "family": self.family,
            "items": [item.to_dict() for item in self.items],
            "totalCost": self.total_cost,
        }


@dataclass
class AllergenRow:
    """Allergen presence for one recipe over the fixed vocabulary."""
    recipe_id: str
    recipe_name: str
    allergens: List[str] = field(default_factory=list)  # Everything the recipe carries
    cells: Dict[str, bool] = field(default_factory=dict)  # One entry per ALLERGEN_LIST item

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "recipeId": self.recipe_id,
            "recipeName": self.recipe_name,
            "allergens": list(self.allergens),
            "cells": dict(self.cells),
        }


@dataclass
class ProductionLine:
    """Ingredient line of a production sheet, quantity already scaled."""
    name: str
    quantity: str
    unit: str


@dataclass
class ProductionSection:
    """Sub-recipe block of a production sheet."""
    name: str
    lines: List[ProductionLine] = field(default_factory=list)
    instructions: str = ""


@dataclass
class ProductionSheet:
    """Kitchen sheet for one recipe scaled to pax."""
    recipe_id: str
    recipe_name: str
    base_yield: float
    pax: float
    ratio: float
    sections: List[ProductionSection] = field(default_factory=list)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "recipeId": self.recipe_id,
            "recipeName": self.recipe_name,
            "baseYield": self.base_yield,
            "pax": self.pax,
            "ratio": self.ratio,
            "sections": [
                {
                    "name": section.name,
                    "instructions": section.instructions,
                    "lines": [
                        {"name": line.name, "quantity": line.quantity, "unit": line.unit}
                        for line in section.lines
                    ],
                }
                for section in self.sections
            ],
        }


@dataclass
class MenuReport:
    """All derived menu views for one (recipes, pax) selection."""
    pax: float
    recipes: List[Recipe]
    economics: MenuEconomics
    purchase_order: List[PurchaseFamily]
    allergen_matrix: List[AllergenRow]
    production_sheets: List[ProductionSheet]
    title: Optional[str] = None
    date: Optional[str] = None

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "title": self.title,
            "date": self.date,
            "pax": self.pax,
            "recipeIds": [r.id for r in self.recipes],
            "economics": self.economics.to_dict(),
            "purchaseOrder": [family.to_dict() for family in self.purchase_order],
            "purchaseOrderTotal": purchase_order_total(self.purchase_order),
            "allergenMatrix": [row.to_dict() for row in self.allergen_matrix],
            "menuAllergens": menu_allergens(self.allergen_matrix),
            "productionSheets": [sheet.to_dict() for sheet in self.production_sheets],
        }


def resolve_menu_recipes(menu: MenuPlan, recipes: Sequence[Recipe]) -> List[Recipe]:
    """
    Resolve a saved menu's recipe ids against the live recipe collection.

    Args:
        menu: Saved menu
        recipes: Current recipe collection

    Returns:
        Recipes in menu order; ids of deleted recipes are skipped
    """
    by_id = {}
    for recipe in recipes:
        by_id.setdefault(recipe.id, recipe)

    resolved = []
    for recipe_id in menu.recipe_ids:
        recipe = by_id.get(recipe_id)
        if recipe is None:
            logger.warning(f"[MENU] Menu {menu.id} references missing recipe {recipe_id}")
            continue
        resolved.append(recipe)
    return resolved


def compute_economics(recipes: Sequence[Recipe], pax: float) -> MenuEconomics:
    """
    Scale each recipe's cost to pax and total the menu.

    cost_per_cover = total_cost / yield (a missing or 0 yield counts as 1),
    contribution = cost_per_cover * pax.
    """
    lines = []
    for recipe in recipes:
        cost_per_cover = (recipe.total_cost or 0) / (recipe.yield_quantity or 1)
        lines.append(EconomicsLine(
            recipe_id=recipe.id,
            recipe_name=recipe.name,
            cost_per_cover=cost_per_cover,
            contribution=cost_per_cover * pax,
        ))

    total = sum(line.contribution for line in lines)
    per_pax = total / pax if lines and pax else 0.0
    return MenuEconomics(pax=pax, lines=lines, total=total, per_pax=per_pax)


def build_purchase_order(
    recipes: Sequence[Recipe],
    pax: float,
    products: Sequence[Product],
) -> List[PurchaseFamily]:
    """
    Aggregate ingredient demand across recipes, grouped by product family.

    Quantities are scaled by pax / yield per recipe and summed per
    (family, ingredient name). The first occurrence fixes the unit; later
    occurrences are added as-is, without unit conversion.

    Args:
        recipes: Selected recipes
        pax: Target cover count
        products: Product list used to resolve each ingredient's family

    Returns:
        Families sorted by name; items in first-seen order
    """
    families: Dict[str, Dict[str, PurchaseLine]] = {}

    for recipe in recipes:
        ratio = pax_ratio(pax, recipe.yield_quantity)
        for ingredient in recipe.iter_ingredients():
            product = find_product_exact(products, ingredient.name)
            family = product.category if product else UNKNOWN_FAMILY

            scaled_qty = parse_quantity(ingredient.quantity) * ratio
            scaled_cost = (ingredient.price_per_unit or 0) * scaled_qty

            items = families.setdefault(family, {})
            line = items.get(ingredient.name)
            if line is None:
                items[ingredient.name] = PurchaseLine(
                    name=ingredient.name,
                    quantity=scaled_qty,
                    unit=ingredient.unit,
                    cost=scaled_cost,
                )
            else:
                if line.unit != ingredient.unit:
                    logger.warning(
                        f"[MENU] '{ingredient.name}' summed across units "
                        f"'{line.unit}' and '{ingredient.unit}'"
                    )
                line.quantity += scaled_qty
                line.cost += scaled_cost

    return [
        PurchaseFamily(family=family, items=list(families[family].values()))
        for family in sorted(families)
    ]


def purchase_order_total(order: Sequence[PurchaseFamily]) -> float:
    """Total cost of a purchase order."""
    return sum(family.total_cost for family in order)


def build_allergen_matrix(recipes: Sequence[Recipe]) -> List[AllergenRow]:
    """One row per recipe marking which of the 14 regulated allergens it carries."""
    rows = []
    for recipe in recipes:
        present = recipe.allergens()
        rows.append(AllergenRow(
            recipe_id=recipe.id,
            recipe_name=recipe.name,
            allergens=present,
            cells={allergen: allergen in present for allergen in ALLERGEN_LIST},
        ))
    return rows


def menu_allergens(rows: Sequence[AllergenRow]) -> List[str]:
    """Regulated allergens present in at least one recipe, in vocabulary order."""
    return [
        allergen for allergen in ALLERGEN_LIST
        if any(row.cells.get(allergen) for row in rows)
    ]


def production_sheet(recipe: Recipe, pax: float) -> ProductionSheet:
    """Recipe quantities scaled from the base yield to pax, per sub-recipe."""
    ratio = pax_ratio(pax, recipe.yield_quantity)
    sections = [
        ProductionSection(
            name=sub.name,
            instructions=sub.instructions,
            lines=[
                ProductionLine(
                    name=ing.name,
                    quantity=scale_quantity_text(ing.quantity, ratio),
                    unit=ing.unit,
                )
                for ing in sub.ingredients
            ],
        )
        for sub in recipe.sub_recipes
    ]
    return ProductionSheet(
        recipe_id=recipe.id,
        recipe_name=recipe.name,
        base_yield=recipe.yield_quantity,
        pax=pax,
        ratio=ratio,
        sections=sections,
    )


def build_menu_report(
    recipes: Sequence[Recipe],
    pax: float,
    products: Sequence[Product],
    title: Optional[str] = None,
    date: Optional[str] = None,
) -> MenuReport:
    """Compute every menu view for the selection."""
    recipes = list(recipes)
    report = MenuReport(
        pax=pax,
        recipes=recipes,
        economics=compute_economics(recipes, pax),
        purchase_order=build_purchase_order(recipes, pax, products),
        allergen_matrix=build_allergen_matrix(recipes),
        production_sheets=[production_sheet(r, pax) for r in recipes],
        title=title,
        date=date,
    )
    logger.info(
        f"[MENU] report recipes={len(recipes)}, pax={pax}, "
        f"families={len(report.purchase_order)}, total={report.economics.total:.2f}"
    )
    return report


def search_recipes(recipes: Sequence[Recipe], term: str) -> List[Recipe]:
    """Filter recipes whose name or any category tag contains the term (case-insensitive)."""
    needle = (term or "").lower()
    if not needle:
        return list(recipes)
    return [
        recipe for recipe in recipes
        if needle in recipe.name.lower()
        or any(needle in tag.lower() for tag in recipe.category)
    ]
