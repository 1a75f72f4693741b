"""
Unit tests for sheets.py - plain-text documents.
"""

from escandallo.data.models import AppSettings, Ingredient, Product, ServiceDetails
from escandallo.menu_engine import build_menu_report
from escandallo.sheets import (
    format_allergen_matrix,
    format_money,
    format_purchase_order,
    format_recipe_sheet,
)


class TestFormatMoney:

    def test_decimal_comma(self):
        assert format_money(3.651) == "3,65 €"

    def test_missing_is_zero(self):
        assert format_money(None) == "0,00 €"


class TestRecipeSheet:
    """Tests for format_recipe_sheet()."""

    def test_scaled_sheet(self, bechamel_recipe):
        bechamel_recipe.total_cost = 5.0
        text = format_recipe_sheet(bechamel_recipe, pax=20)

        assert text.startswith("CROQUETAS DE JAMÓN")
        assert "Escalado a: 20 pax" in text
        assert "Coste por ración: 0,50 €" in text
        assert "☐ 1000 g Harina" in text
        assert "BECHAMEL" in text
        assert "Sin alérgenos declarados" in text

    def test_header_and_service(self, bechamel_recipe):
        bechamel_recipe.service_details = ServiceDetails(serving_temp="65 ºC", pass_time="10 min")
        settings = AppSettings(teacher_name="Ana", institute_name="IES Hostelería")

        text = format_recipe_sheet(bechamel_recipe, settings=settings)

        assert text.splitlines()[0] == "IES Hostelería  ·  Ana"
        assert "Temperatura: 65 ºC" in text
        assert "Tipo de servicio: Servicio a la Americana" in text


class TestMenuDocuments:
    """Tests for the purchase order and allergen texts."""

    def test_purchase_order_text(self, make_recipe):
        recipe = make_recipe("r", "Gazpacho", 10, [
            Ingredient(name="Tomate", quantity="2", unit="kg", price_per_unit=2.0, cost=4.0),
        ])
        products = [Product(id="t", name="Tomate", unit="kg", price_per_unit=2.0, category="VERDURAS")]
        report = build_menu_report([recipe], 20, products)

        text = format_purchase_order(report.purchase_order, report.pax)

        assert "HOJA DE PEDIDO (20 pax)" in text
        assert "☐ Tomate - 4 kg  (8,00 €)" in text
        assert "TOTAL PEDIDO: 8,00 €" in text

    def test_allergen_text(self, make_recipe):
        recipe = make_recipe("r", "Pan", 1, [Ingredient(name="Harina", allergens=["Gluten"])])
        report = build_menu_report([recipe], 1, [])

        text = format_allergen_matrix(report.allergen_matrix)

        assert "Pan: Gluten" in text
        assert text.endswith("Menú: Gluten")
