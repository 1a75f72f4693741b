"""
Pytest configuration and shared fixtures.

Fixtures are reusable test setup that can be injected into tests.
"""

import pytest
import tempfile
import shutil
from datetime import datetime

from escandallo.data.database import DatabaseInterface
from escandallo.data.models import Ingredient, MenuPlan, Product, Recipe, SubRecipe
from escandallo.main import KitchenAssistant


@pytest.fixture
def temp_db_dir():
    """
    Create a temporary database directory for testing.

    This fixture is automatically cleaned up after each test.
    """
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir)


@pytest.fixture
def db(temp_db_dir):
    """
    Create a fresh DatabaseInterface for each test.

    Usage in tests:
        def test_something(db):
            db.save_products(...)
    """
    return DatabaseInterface(db_dir=temp_db_dir)


@pytest.fixture
def assistant(temp_db_dir):
    """KitchenAssistant on an empty temporary database."""
    return KitchenAssistant(db_dir=temp_db_dir)


@pytest.fixture
def sample_products():
    """Small price list covering mass, volume and unconvertible units."""
    return [
        Product(id="p1", name="HARINA", unit="kg", price_per_unit=1.20,
                category="SECOS Y ULTRAMARINOS", allergens=["Gluten"]),
        Product(id="p2", name="Leche", unit="l", price_per_unit=1.00,
                category="LÁCTEOS Y HUEVOS", allergens=["Lácteos"]),
        Product(id="p3", name="Tomate", unit="kg", price_per_unit=2.00,
                category="VERDURAS", allergens=[]),
        Product(id="p4", name="Huevo", unit="ud", price_per_unit=0.25,
                category="LÁCTEOS Y HUEVOS", allergens=["Huevos"]),
    ]


@pytest.fixture
def make_recipe():
    """
    Factory for single-stage recipes.

    Usage in tests:
        def test_something(make_recipe):
            recipe = make_recipe("r1", "Gazpacho", 10, [Ingredient(...)])
    """
    def _make(recipe_id, name, yield_quantity, ingredients, total_cost=0.0, category=None):
        return Recipe(
            id=recipe_id,
            name=name,
            category=category or ["Primeros"],
            creator="Chef Test",
            yield_quantity=yield_quantity,
            sub_recipes=[SubRecipe(id=f"{recipe_id}-s1", name="Elaboración", ingredients=ingredients)],
            total_cost=total_cost,
        )
    return _make


@pytest.fixture
def bechamel_recipe():
    """Two-stage recipe; ingredient costs not yet synced."""
    return Recipe(
        id="r-bechamel",
        name="Croquetas de Jamón",
        category=["Entrantes"],
        creator="Chef Test",
        yield_quantity=10,
        sub_recipes=[
            SubRecipe(
                id="s1",
                name="Bechamel",
                ingredients=[
                    Ingredient(name="Harina", quantity="500", unit="g"),
                    Ingredient(name="Leche", quantity="1,5", unit="l"),
                ],
                instructions="Hacer un roux y añadir la leche caliente.",
            ),
            SubRecipe(
                id="s2",
                name="Rebozado",
                ingredients=[
                    Ingredient(name="Huevo", quantity="3", unit="ud"),
                    Ingredient(name="Pan rallado", quantity="200", unit="g",
                               price_per_unit=0.004, cost=0.8),
                ],
            ),
        ],
    )


@pytest.fixture
def sample_menu():
    """Saved menu for testing."""
    return MenuPlan(
        id="menu-1",
        title="Menú degustación",
        date="2025-10-20",
        pax=20,
        recipe_ids=["r-bechamel"],
        last_modified=datetime(2025, 10, 20, 10, 0, 0),
    )
