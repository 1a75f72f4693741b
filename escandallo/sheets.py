"""
Plain-text renderings of recipe and menu documents.

Used by the CLI; the web layer serves the underlying data as JSON instead.
"""

from typing import List, Optional, Sequence

from .data.models import ALLERGEN_LIST, AppSettings, Recipe
from .menu_engine import (
    AllergenRow,
    MenuEconomics,
    MenuReport,
    ProductionSheet,
    PurchaseFamily,
    menu_allergens,
    production_sheet,
    purchase_order_total,
)
from .quantities import format_quantity


def format_money(value: Optional[float]) -> str:
    """Euro amount with two decimals and a decimal comma."""
    return f"{(value or 0):.2f}".replace(".", ",") + " €"


def _header(settings: Optional[AppSettings]) -> List[str]:
    if not settings or not (settings.institute_name or settings.teacher_name):
        return []
    return [f"{settings.institute_name}  ·  {settings.teacher_name}".strip(" ·"), ""]


def format_recipe_sheet(recipe: Recipe, pax: Optional[float] = None,
                        settings: Optional[AppSettings] = None) -> str:
    """
    Format a recipe card, optionally scaled to another cover count.

    Args:
        recipe: Recipe to print
        pax: Covers to scale to (defaults to the recipe's base yield)
        settings: Workbook settings for the header

    Returns:
        Formatted recipe sheet string
    """
    pax = pax or recipe.yield_quantity
    sheet = production_sheet(recipe, pax)
    lines = _header(settings)
    lines += [
        recipe.name.upper(),
        " • ".join(recipe.category),
        "=" * 60,
        f"Escandallo base: {format_quantity(recipe.yield_quantity)} {recipe.yield_unit}"
        f"  |  Escalado a: {format_quantity(pax)} pax",
        f"Coste total: {format_money(recipe.total_cost)}"
        f"  |  Coste por ración: {format_money(recipe.cost_per_portion())}",
    ]
    if recipe.creator:
        lines.append(f"Autor: {recipe.creator}")

    lines.append("")
    lines.extend(_production_body(sheet))

    allergens = recipe.allergens()
    lines.append("")
    lines.append("ALÉRGENOS: " + (", ".join(allergens) if allergens else "Sin alérgenos declarados"))

    if recipe.plating_instructions:
        lines += ["", "EMPLATADO", "-" * 30, recipe.plating_instructions]

    details = recipe.service_details
    service = [
        ("Tipo de servicio", details.service_type),
        ("Presentación", details.presentation),
        ("Temperatura", details.serving_temp),
        ("Marcaje", details.cutlery),
        ("Tiempo de pase", details.pass_time),
        ("Descripción al cliente", details.client_description),
    ]
    service = [(label, value) for label, value in service if value]
    if service:
        lines += ["", "SERVICIO", "-" * 30]
        lines += [f"  {label}: {value}" for label, value in service]

    return "\n".join(lines)


def _production_body(sheet: ProductionSheet) -> List[str]:
    lines = []
    for section in sheet.sections:
        lines.append(section.name.upper())
        lines.append("-" * 30)
        for line in section.lines:
            text = " ".join(part for part in (line.quantity, line.unit, line.name) if part)
            lines.append(f"  ☐ {text}")
        if section.instructions:
            lines.append("")
            lines.append(section.instructions)
        lines.append("")
    return lines


def format_production_sheet(sheet: ProductionSheet) -> str:
    """Format a kitchen production sheet."""
    lines = [
        f"PRODUCCIÓN: {sheet.recipe_name.upper()}",
        f"{format_quantity(sheet.pax)} pax (base {format_quantity(sheet.base_yield)}, "
        f"factor {format_quantity(sheet.ratio)})",
        "=" * 60,
    ]
    lines.extend(_production_body(sheet))
    return "\n".join(lines).rstrip()


def format_purchase_order(order: Sequence[PurchaseFamily], pax: float) -> str:
    """Format a purchase order grouped by product family."""
    lines = [
        f"HOJA DE PEDIDO ({format_quantity(pax)} pax)",
        "=" * 60,
    ]
    for family in order:
        lines.append(f"\n{family.family}")
        lines.append("-" * 30)
        for item in family.items:
            lines.append(
                f"  ☐ {item.name} - {format_quantity(item.quantity)} {item.unit}"
                f"  ({format_money(item.cost)})"
            )
        lines.append(f"  Subtotal: {format_money(family.total_cost)}")
    lines.append(f"\nTOTAL PEDIDO: {format_money(purchase_order_total(order))}")
    return "\n".join(lines)


def format_allergen_matrix(rows: Sequence[AllergenRow]) -> str:
    """Format the allergen declaration as one line per recipe."""
    lines = ["DECLARACIÓN DE ALÉRGENOS", "=" * 60]
    for row in rows:
        present = [a for a in ALLERGEN_LIST if row.cells.get(a)]
        lines.append(f"  {row.recipe_name}: {', '.join(present) if present else '-'}")
    present_anywhere = menu_allergens(rows)
    lines.append("")
    lines.append("Menú: " + (", ".join(present_anywhere) if present_anywhere else "sin alérgenos"))
    return "\n".join(lines)


def format_economics(economics: MenuEconomics) -> str:
    """Format the menu cost summary."""
    lines = [f"ECONOMÍA DEL MENÚ ({format_quantity(economics.pax)} pax)", "=" * 60]
    for line in economics.lines:
        lines.append(
            f"  {line.recipe_name}: {format_money(line.cost_per_cover)}/pax"
            f" -> {format_money(line.contribution)}"
        )
    lines.append(f"\nTotal: {format_money(economics.total)}")
    lines.append(f"Por pax: {format_money(economics.per_pax)}")
    return "\n".join(lines)


def format_menu_report(report: MenuReport) -> str:
    """Format every document of a menu report."""
    title = report.title or "Menú"
    heading = f"{title} - {report.date}" if report.date else title
    parts = [
        heading.upper(),
        format_economics(report.economics),
        format_purchase_order(report.purchase_order, report.pax),
        format_allergen_matrix(report.allergen_matrix),
    ]
    parts.extend(format_production_sheet(sheet) for sheet in report.production_sheets)
    return "\n\n".join(parts)
