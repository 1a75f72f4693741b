"""
Product sync: refresh recipe ingredient prices and allergens from the price list.

Run after a product is edited or the product list is imported. The pass is a
pure transform: inputs are never mutated, changed recipes come back as new
objects and untouched recipes come back as the very same objects, so callers
can detect changes by identity. Running it twice with the same products
changes nothing the second time.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Sequence

from .data.models import Ingredient, Product, Recipe, SubRecipe
from .quantities import convert_unit, parse_quantity_strict

logger = logging.getLogger(__name__)


def find_product(products: Sequence[Product], name: str) -> Optional[Product]:
    """
    Find a product by name (case-insensitive).

    Args:
        products: Product list, in priority order
        name: Ingredient name to look up

    Returns:
        First matching Product, or None
    """
    name_upper = (name or "").upper()
    for product in products:
        if product.name.upper() == name_upper:
            return product
    return None


def find_product_exact(products: Sequence[Product], name: str) -> Optional[Product]:
    """Find a product whose name matches exactly (first match wins)."""
    for product in products:
        if product.name == name:
            return product
    return None


def _sync_ingredient(ingredient: Ingredient, products: Sequence[Product]) -> Ingredient:
    """Return a refreshed copy of the ingredient, or the same object if nothing changed."""
    product = find_product(products, ingredient.name)
    if product is None:
        return ingredient

    quantity = parse_quantity_strict(ingredient.quantity)
    if quantity is None:
        return ingredient

    # Price expressed in the recipe's own unit
    factor = convert_unit(1, ingredient.unit, product.unit)
    price_in_recipe_unit = product.price_per_unit * factor
    new_cost = quantity * price_in_recipe_unit

    allergens_changed = list(ingredient.allergens) != list(product.allergens)
    if (
        ingredient.price_per_unit != price_in_recipe_unit
        or ingredient.cost != new_cost
        or allergens_changed
        or ingredient.category != product.category
    ):
        logger.debug(
            f"[SYNC] {ingredient.name}: price {ingredient.price_per_unit} -> "
            f"{price_in_recipe_unit}, cost {ingredient.cost} -> {new_cost}"
        )
        return replace(
            ingredient,
            price_per_unit=price_in_recipe_unit,
            cost=new_cost,
            allergens=list(product.allergens),
            category=product.category,
        )
    return ingredient


def _sync_sub_recipe(sub: SubRecipe, products: Sequence[Product]) -> SubRecipe:
    updated = [_sync_ingredient(ing, products) for ing in sub.ingredients]
    if any(new is not old for new, old in zip(updated, sub.ingredients)):
        return replace(sub, ingredients=updated)
    return sub


def sync_recipe(recipe: Recipe, products: Sequence[Product]) -> Recipe:
    """
    Sync a single recipe against the product list.

    Returns:
        A new Recipe with refreshed ingredients and total cost, or the same
        object when no ingredient changed
    """
    updated_subs = [_sync_sub_recipe(sub, products) for sub in recipe.sub_recipes]
    if not any(new is not old for new, old in zip(updated_subs, recipe.sub_recipes)):
        return recipe

    synced = replace(recipe, sub_recipes=updated_subs)
    synced.total_cost = synced.compute_total_cost()
    return synced


def sync_recipes_with_products(
    recipes: Sequence[Recipe],
    products: Sequence[Product],
) -> List[Recipe]:
    """
    Refresh every recipe's cached ingredient pricing from the product list.

    For each ingredient whose name matches a product (case-insensitive, first
    match wins) and whose quantity parses, the price per recipe unit, cost,
    allergens and family are recomputed. Unmatched ingredients and
    unparseable quantities keep their cached values.

    Args:
        recipes: Current recipe collection
        products: Authoritative product list

    Returns:
        New recipe list, same order; unchanged recipes are the input objects
    """
    synced = [sync_recipe(recipe, products) for recipe in recipes]
    changed = sum(1 for new, old in zip(synced, recipes) if new is not old)
    logger.info(f"[SYNC] recipes={len(synced)}, products={len(products)}, changed={changed}")
    return synced
