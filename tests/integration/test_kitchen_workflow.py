"""
Integration tests for KitchenAssistant.

Tests the controller contract: each mutation replaces the stored collection
and product changes re-sync every recipe.
"""

import json

import pytest

from escandallo.data.models import MenuPlan, Product
from escandallo.main import KitchenAssistant, main


pytestmark = pytest.mark.integration


@pytest.fixture
def stocked(assistant, sample_products, bechamel_recipe):
    """Assistant with one recipe synced against the sample price list."""
    assistant.save_recipe(bechamel_recipe)
    assistant.import_products(sample_products)
    return assistant


class TestProductWorkflow:
    """Product edits and imports drive recipe sync."""

    def test_import_syncs_existing_recipes(self, assistant, sample_products, bechamel_recipe):
        assistant.save_recipe(bechamel_recipe)

        changed = assistant.import_products(sample_products)

        recipe = assistant.get_recipe("r-bechamel")
        assert changed == 1
        assert recipe.sub_recipes[0].ingredients[0].cost == pytest.approx(0.6)
        assert recipe.total_cost == pytest.approx(3.65)

    def test_reimport_same_products_changes_nothing(self, stocked, sample_products):
        assert stocked.import_products(sample_products) == 0

    def test_edit_product_resyncs(self, stocked):
        """Doubling the flour price doubles the flour line cost."""
        edited = Product(id="p1", name="HARINA", unit="kg", price_per_unit=2.40,
                         category="SECOS Y ULTRAMARINOS", allergens=["Gluten"])

        assert stocked.edit_product(edited) is True

        recipe = stocked.get_recipe("r-bechamel")
        assert recipe.sub_recipes[0].ingredients[0].cost == pytest.approx(1.2)
        assert recipe.total_cost == pytest.approx(4.25)

    def test_edit_unknown_product(self, stocked):
        assert stocked.edit_product(Product(id="nope", name="X", unit="kg", price_per_unit=1)) is False

    def test_add_product_goes_first_without_sync(self, stocked):
        stocked.add_product(Product(id="", name="Pan rallado", unit="kg", price_per_unit=10))

        products = stocked.get_products()
        assert products[0].name == "Pan rallado"
        assert products[0].id.startswith("p-")
        pan = stocked.get_recipe("r-bechamel").sub_recipes[1].ingredients[1]
        assert pan.cost == 0.8

    def test_delete_product_keeps_cached_costs(self, stocked):
        assert stocked.delete_product("p1") is True
        assert stocked.delete_product("p1") is False
        harina = stocked.get_recipe("r-bechamel").sub_recipes[0].ingredients[0]
        assert harina.cost == pytest.approx(0.6)

    def test_import_products_file_csv(self, assistant, bechamel_recipe, temp_db_dir):
        assistant.save_recipe(bechamel_recipe)
        path = f"{temp_db_dir}/precios.csv"
        with open(path, "w", encoding="utf-8") as f:
            f.write("name;unit;precio;familia;alergenos\nHarina;kg;1,20;secos;Gluten\n")

        assert assistant.import_products_file(path) == 1
        assert assistant.get_products()[0].category == "SECOS"


class TestRecipeWorkflow:
    """Recipe saving, search and deletion."""

    def test_new_recipes_go_first(self, stocked, make_recipe):
        stocked.save_recipe(make_recipe("", "Gazpacho", 4, []))

        recipes = stocked.get_recipes()
        assert recipes[0].name == "Gazpacho"
        assert recipes[0].id.startswith("r-")
        assert recipes[1].id == "r-bechamel"

    def test_save_existing_replaces_in_place(self, stocked, make_recipe):
        stocked.save_recipe(make_recipe("r-new", "Nueva", 4, []))
        recipe = stocked.get_recipe("r-bechamel")
        recipe.name = "Croquetas de Pollo"

        stocked.save_recipe(recipe)

        assert [r.name for r in stocked.get_recipes()] == ["Nueva", "Croquetas de Pollo"]

    def test_import_existing_card_adds_a_copy(self, stocked):
        """Importing a card exported from this workbook never overwrites the original."""
        original = stocked.get_recipe("r-bechamel")

        imported = stocked.import_recipe(original.to_dict())

        recipes = stocked.get_recipes()
        assert len(recipes) == 2
        assert recipes[0].id == imported.id
        assert imported.id != "r-bechamel"
        assert recipes[1] == original
        assert imported.total_cost == pytest.approx(original.total_cost)

    def test_import_legacy_card(self, assistant):
        imported = assistant.import_recipe({
            "id": "123", "name": "Flan", "category": "Postres", "yieldQuantity": "6",
            "ingredients": [{"name": "Huevo", "quantity": "4", "unit": "ud", "cost": 1.0}],
        })

        assert imported.category == ["Postres"]
        assert imported.yield_quantity == 6
        assert imported.sub_recipes[0].ingredients[0].name == "Huevo"
        assert imported.total_cost == pytest.approx(1.0)

    def test_import_card_without_name_rejected(self, stocked):
        with pytest.raises(ValueError):
            stocked.import_recipe({"yieldQuantity": 4})
        with pytest.raises(ValueError):
            stocked.import_recipe(["not", "a", "card"])
        assert len(stocked.get_recipes()) == 1

    def test_search(self, stocked):
        assert [r.id for r in stocked.search_recipes("croqueta")] == ["r-bechamel"]
        assert stocked.search_recipes("paella") == []

    def test_recipe_sheet_defaults_to_base_yield(self, stocked):
        sheet = stocked.recipe_sheet("r-bechamel")
        assert sheet.pax == 10
        assert sheet.ratio == 1
        assert stocked.recipe_sheet("missing") is None


class TestMenuWorkflow:
    """Saved menus and reports."""

    def test_save_new_menu(self, stocked):
        menu = stocked.save_menu(MenuPlan(id="", title="Jornadas", date="2025-11-03",
                                          pax=30, recipe_ids=["r-bechamel"]))

        assert menu.id.startswith("menu-")
        assert stocked.get_menus()[0].id == menu.id

    def test_save_existing_menu_overwrites(self, stocked, sample_menu):
        stocked.save_menu(sample_menu)
        stocked.save_menu(MenuPlan(id="", title="Otro", date="", pax=5))
        sample_menu.pax = 40

        stocked.save_menu(sample_menu)

        menus = stocked.get_menus()
        assert len(menus) == 2
        assert menus[1].id == "menu-1"
        assert menus[1].pax == 40

    def test_delete_menu(self, stocked, sample_menu):
        stocked.save_menu(sample_menu)
        assert stocked.delete_menu("menu-1") is True
        assert stocked.get_menus() == []
        assert stocked.delete_menu("menu-1") is False

    def test_menu_report_for_saved_menu(self, stocked, sample_menu):
        stocked.save_menu(sample_menu)

        report = stocked.menu_report_for("menu-1")

        assert report.pax == 20
        assert report.title == "Menú degustación"
        assert report.economics.total == pytest.approx(3.65 * 2)
        # Family lookup is by exact name: "Harina" does not match "HARINA"
        families = {f.family for f in report.purchase_order}
        assert families == {"LÁCTEOS Y HUEVOS", "OTROS"}

    def test_deleted_recipe_drops_out_of_menu(self, stocked, sample_menu):
        stocked.save_menu(sample_menu)
        stocked.delete_recipe("r-bechamel")

        assert stocked.load_menu_recipes("menu-1") == []
        assert stocked.get_menu("menu-1").recipe_ids == ["r-bechamel"]
        assert stocked.menu_report_for("menu-1").economics.total == 0

    def test_missing_menu(self, stocked):
        assert stocked.menu_report_for("nope") is None
        assert stocked.load_menu_recipes("nope") is None


class TestBackup:
    """Backup export and restore."""

    def test_round_trip_into_new_workbook(self, stocked, sample_menu, tmp_path):
        stocked.save_menu(sample_menu)
        data = json.loads(json.dumps(stocked.export_backup().to_dict()))

        fresh = KitchenAssistant(db_dir=str(tmp_path / "other"))
        fresh.restore_backup(data)

        assert fresh.get_recipes() == stocked.get_recipes()
        assert fresh.get_products() == stocked.get_products()
        assert [m.id for m in fresh.get_menus()] == ["menu-1"]

    def test_restore_without_products_keeps_existing(self, stocked):
        stocked.restore_backup({"recipes": [], "settings": {"teacherName": "Ana"}})

        assert stocked.get_recipes() == []
        assert stocked.get_products()[0].name == "HARINA"
        assert stocked.get_settings().teacher_name == "Ana"

    def test_restore_rejects_payload_without_recipes(self, stocked):
        with pytest.raises(ValueError):
            stocked.restore_backup({"settings": {}})


class TestCli:
    """CLI commands through main()."""

    def test_report_command(self, stocked, temp_db_dir, capsys):
        code = main(["report", "--recipes", "r-bechamel", "--pax", "20", "--db-dir", temp_db_dir])

        out = capsys.readouterr().out
        assert code == 0
        assert "HOJA DE PEDIDO" in out
        assert "DECLARACIÓN DE ALÉRGENOS" in out

    def test_report_requires_pax(self, temp_db_dir, capsys):
        assert main(["report", "--recipes", "r1", "--db-dir", temp_db_dir]) == 1
        assert "❌" in capsys.readouterr().out

    def test_import_rejected(self, temp_db_dir, capsys):
        path = f"{temp_db_dir}/malo.json"
        with open(path, "w", encoding="utf-8") as f:
            f.write('[{"name": "X", "unit": "kg", "pricePerUnit": -3}]')

        assert main(["import-products", path, "--db-dir", temp_db_dir]) == 1
        assert "row 1" in capsys.readouterr().out

    def test_import_recipe_command(self, stocked, temp_db_dir, capsys):
        path = f"{temp_db_dir}/croquetas.json"
        with open(path, "w", encoding="utf-8") as f:
            json.dump(stocked.get_recipe("r-bechamel").to_dict(), f)

        assert main(["import-recipe", path, "--db-dir", temp_db_dir]) == 0
        assert "✓" in capsys.readouterr().out
        assert len(stocked.get_recipes()) == 2

    def test_import_recipe_command_bad_file(self, temp_db_dir, capsys):
        path = f"{temp_db_dir}/roto.json"
        with open(path, "w", encoding="utf-8") as f:
            f.write("{not json")

        assert main(["import-recipe", path, "--db-dir", temp_db_dir]) == 1
        assert "❌" in capsys.readouterr().out

    def test_export_backup_command(self, stocked, temp_db_dir):
        path = f"{temp_db_dir}/backup.json"
        assert main(["export-backup", path, "--db-dir", temp_db_dir]) == 0
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        assert data["recipes"][0]["id"] == "r-bechamel"
