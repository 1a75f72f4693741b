"""
Data models for the recipe costing workbook.

These models define the core entities used throughout the system:
- Product: price list entry (the authoritative price and allergen source)
- Ingredient / SubRecipe / Recipe: the technical recipe card (escandallo)
- MenuPlan: a saved selection of recipes scaled to a number of covers
- AppSettings / AppBackup: workbook settings and full backups

Dictionary forms use the camelCase keys of the browser app's JSON backups so
that exported files can be restored on either side.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterator, List, Optional

from ..quantities import parse_quantity, parse_quantity_strict


# The 14 allergens regulated by EU Regulation 1169/2011, in display order.
ALLERGEN_LIST: List[str] = [
    "Gluten",
    "Crustáceos",
    "Huevos",
    "Pescado",
    "Cacahuetes",
    "Soja",
    "Lácteos",
    "Frutos de cáscara",
    "Apio",
    "Mostaza",
    "Sésamo",
    "Sulfitos",
    "Altramuces",
    "Moluscos",
]

DEFAULT_CATEGORIES: List[str] = [
    "Entrantes",
    "Primeros",
    "Segundos",
    "Postres",
    "Guarniciones",
    "Salsas y Fondos",
    "Panadería",
]

DEFAULT_PRODUCT_FAMILIES: List[str] = [
    "CARNES",
    "PESCADOS Y MARISCOS",
    "VERDURAS",
    "FRUTAS",
    "LÁCTEOS Y HUEVOS",
    "SECOS Y ULTRAMARINOS",
    "ACEITES Y GRASAS",
    "ESPECIAS Y CONDIMENTOS",
    "BEBIDAS",
    "OTROS",
]

SERVICE_TYPES: List[str] = [
    "Servicio a la Americana",
    "Servicio a la Francesa",
    "Servicio a la Inglesa",
    "Servicio a la Rusa",
    "Buffet",
]

# Purchase-order family for ingredients with no matching product
UNKNOWN_FAMILY = "OTROS"


def _parse_pax(value) -> float:
    """Cover count from stored or submitted data; missing means 0.

    Raises:
        ValueError: If a value is given but is not a number
    """
    if value is None or value == "":
        return 0.0
    pax = parse_quantity_strict(value)
    if pax is None or not math.isfinite(pax) or pax < 0:
        raise ValueError(f"pax must be a non-negative number, got {value!r}")
    return pax


@dataclass
class Product:
    """Entry of the product price list.

    ``price_per_unit`` is the price of one ``unit`` (e.g. 1.20 per "kg").
    """
    id: str
    name: str
    unit: str
    price_per_unit: float
    category: str = UNKNOWN_FAMILY
    allergens: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "unit": self.unit,
            "pricePerUnit": self.price_per_unit,
            "category": self.category,
            "allergens": list(self.allergens),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Product":
        """Create Product from dictionary."""
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            unit=data.get("unit", ""),
            price_per_unit=parse_quantity(data.get("pricePerUnit")),
            category=data.get("category") or UNKNOWN_FAMILY,
            allergens=list(data.get("allergens") or []),
        )


@dataclass
class Ingredient:
    """Ingredient line of a sub-recipe.

    ``quantity`` is kept as the text typed in the editor ("1,5", "500").
    ``price_per_unit``, ``cost``, ``allergens`` and ``category`` are cached
    copies derived from the matching product; they stay as they are when no
    product matches.
    """
    name: str
    quantity: str = ""
    unit: str = ""
    price_per_unit: Optional[float] = None  # Price of one `unit` of this ingredient
    cost: Optional[float] = None  # quantity * price_per_unit
    allergens: List[str] = field(default_factory=list)
    category: Optional[str] = None

    def __str__(self) -> str:
        """Human-readable ingredient string."""
        if self.quantity and self.unit:
            return f"{self.quantity} {self.unit} {self.name}"
        elif self.quantity:
            return f"{self.quantity} {self.name}"
        return self.name

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        data = {
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "pricePerUnit": self.price_per_unit,
            "cost": self.cost,
            "allergens": list(self.allergens),
        }
        if self.category is not None:
            data["category"] = self.category
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "Ingredient":
        """Create Ingredient from dictionary."""
        quantity = data.get("quantity", "")
        return cls(
            name=data.get("name", ""),
            quantity="" if quantity is None else str(quantity),
            unit=data.get("unit", "") or "",
            price_per_unit=parse_quantity_strict(data.get("pricePerUnit")),
            cost=parse_quantity_strict(data.get("cost")),
            allergens=list(data.get("allergens") or []),
            category=data.get("category"),
        )


@dataclass
class SubRecipe:
    """A preparation stage of a recipe with its own ingredient list."""
    id: str
    name: str
    ingredients: List[Ingredient] = field(default_factory=list)
    instructions: str = ""
    photos: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "ingredients": [ing.to_dict() for ing in self.ingredients],
            "instructions": self.instructions,
            "photos": list(self.photos),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "SubRecipe":
        """Create SubRecipe from dictionary."""
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            ingredients=[Ingredient.from_dict(i) for i in data.get("ingredients") or []],
            instructions=data.get("instructions", "") or "",
            photos=list(data.get("photos") or []),
        )


@dataclass
class ServiceDetails:
    """Front-of-house notes printed on the recipe sheet."""
    presentation: str = ""
    serving_temp: str = ""
    cutlery: str = ""
    pass_time: str = ""
    service_type: str = SERVICE_TYPES[0]
    client_description: str = ""

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "presentation": self.presentation,
            "servingTemp": self.serving_temp,
            "cutlery": self.cutlery,
            "passTime": self.pass_time,
            "serviceType": self.service_type,
            "clientDescription": self.client_description,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "ServiceDetails":
        """Create ServiceDetails from dictionary (None gives defaults)."""
        data = data or {}
        return cls(
            presentation=data.get("presentation", ""),
            serving_temp=data.get("servingTemp", ""),
            cutlery=data.get("cutlery", ""),
            pass_time=data.get("passTime", ""),
            service_type=data.get("serviceType") or SERVICE_TYPES[0],
            client_description=data.get("clientDescription", ""),
        )


@dataclass
class Recipe:
    """Technical recipe card costed for ``yield_quantity`` covers."""

    id: str
    name: str
    category: List[str] = field(default_factory=list)
    creator: str = ""
    yield_quantity: float = 1
    yield_unit: str = "pax"
    sub_recipes: List[SubRecipe] = field(default_factory=list)
    total_cost: float = 0.0  # Sum of every ingredient cost
    plating_instructions: str = ""
    service_details: ServiceDetails = field(default_factory=ServiceDetails)
    photo: Optional[str] = None

    def iter_ingredients(self) -> Iterator[Ingredient]:
        """Yield every ingredient of every sub-recipe, in order."""
        for sub in self.sub_recipes:
            yield from sub.ingredients

    def compute_total_cost(self) -> float:
        """Sum of ingredient costs across all sub-recipes (missing cost counts as 0)."""
        return sum(
            sum((ing.cost or 0) for ing in sub.ingredients)
            for sub in self.sub_recipes
        )

    def allergens(self) -> List[str]:
        """Union of ingredient allergens, in first-seen order."""
        seen: List[str] = []
        for ing in self.iter_ingredients():
            for allergen in ing.allergens:
                if allergen not in seen:
                    seen.append(allergen)
        return seen

    def has_allergen(self, allergen: str) -> bool:
        """Check if any ingredient carries the allergen (case-insensitive)."""
        allergen_lower = allergen.lower()
        return any(a.lower() == allergen_lower for a in self.allergens())

    def cost_per_portion(self) -> float:
        """Cost of one cover; 0 when cost or yield is missing."""
        if not self.total_cost or not self.yield_quantity:
            return 0.0
        return self.total_cost / self.yield_quantity

    def __str__(self) -> str:
        """Human-readable string."""
        return f"{self.name} ({self.yield_quantity:g} {self.yield_unit})"

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        data = {
            "id": self.id,
            "name": self.name,
            "category": list(self.category),
            "creator": self.creator,
            "yieldQuantity": self.yield_quantity,
            "yieldUnit": self.yield_unit,
            "subRecipes": [sub.to_dict() for sub in self.sub_recipes],
            "totalCost": self.total_cost,
            "platingInstructions": self.plating_instructions,
            "serviceDetails": self.service_details.to_dict(),
        }
        if self.photo:
            data["photo"] = self.photo
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "Recipe":
        """Create Recipe from a current-schema dictionary.

        Older shapes must go through ``migrations.migrate_recipe`` first.
        """
        category = data.get("category") or []
        if isinstance(category, str):
            category = [category]
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            category=list(category),
            creator=data.get("creator", "") or "",
            yield_quantity=parse_quantity(data.get("yieldQuantity")),
            yield_unit=data.get("yieldUnit") or "pax",
            sub_recipes=[SubRecipe.from_dict(s) for s in data.get("subRecipes") or []],
            total_cost=parse_quantity(data.get("totalCost")),
            plating_instructions=data.get("platingInstructions", "") or "",
            service_details=ServiceDetails.from_dict(data.get("serviceDetails")),
            photo=data.get("photo"),
        )


@dataclass
class MenuPlan:
    """Saved menu: a dated selection of recipes scaled to ``pax`` covers.

    Recipes are referenced by id only; ids whose recipe was deleted are
    dropped when the menu is resolved.
    """
    id: str
    title: str
    date: str  # ISO format: "2025-01-20"
    pax: float
    recipe_ids: List[str] = field(default_factory=list)
    last_modified: datetime = field(default_factory=datetime.now)

    def get_summary(self) -> str:
        """Concise summary of the menu."""
        return f"{self.date} - {self.title} ({len(self.recipe_ids)} recetas, {self.pax:g} pax)"

    def __str__(self) -> str:
        """Human-readable string."""
        return self.get_summary()

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "date": self.date,
            "pax": self.pax,
            "recipeIds": list(self.recipe_ids),
            "lastModified": int(self.last_modified.timestamp() * 1000),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "MenuPlan":
        """Create MenuPlan from dictionary.

        ``lastModified`` is a millisecond epoch in browser backups; ISO strings
        are accepted too.
        """
        last_modified = data.get("lastModified")
        if isinstance(last_modified, (int, float)):
            modified = datetime.fromtimestamp(last_modified / 1000)
        elif isinstance(last_modified, str) and last_modified:
            modified = datetime.fromisoformat(last_modified)
        else:
            modified = datetime.now()

        return cls(
            id=str(data.get("id", "")),
            title=data.get("title", ""),
            date=data.get("date", ""),
            pax=_parse_pax(data.get("pax")),
            recipe_ids=[str(r) for r in data.get("recipeIds") or []],
            last_modified=modified,
        )


@dataclass
class AppSettings:
    """Workbook settings printed on every sheet."""
    teacher_name: str = ""
    institute_name: str = ""
    teacher_logo: str = ""
    institute_logo: str = ""
    categories: List[str] = field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    product_families: List[str] = field(default_factory=lambda: list(DEFAULT_PRODUCT_FAMILIES))

    def ensure_defaults(self) -> bool:
        """Restore default categories/families when empty.

        Returns:
            True if anything was filled in
        """
        updated = False
        if not self.categories:
            self.categories = list(DEFAULT_CATEGORIES)
            updated = True
        if not self.product_families:
            self.product_families = list(DEFAULT_PRODUCT_FAMILIES)
            updated = True
        return updated

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "teacherName": self.teacher_name,
            "instituteName": self.institute_name,
            "teacherLogo": self.teacher_logo,
            "instituteLogo": self.institute_logo,
            "categories": list(self.categories),
            "productFamilies": list(self.product_families),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "AppSettings":
        """Create AppSettings from dictionary."""
        return cls(
            teacher_name=data.get("teacherName", ""),
            institute_name=data.get("instituteName", ""),
            teacher_logo=data.get("teacherLogo", ""),
            institute_logo=data.get("instituteLogo", ""),
            categories=list(data.get("categories") or []),
            product_families=list(data.get("productFamilies") or []),
        )


@dataclass
class AppBackup:
    """Full workbook export (recipes, settings, products, menus)."""
    recipes: List[Recipe]
    settings: AppSettings
    product_database: Optional[List[Product]] = None
    saved_menus: Optional[List[MenuPlan]] = None
    exported_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        data = {
            "recipes": [r.to_dict() for r in self.recipes],
            "settings": self.settings.to_dict(),
            "exportedAt": self.exported_at.isoformat(),
        }
        if self.product_database is not None:
            data["productDatabase"] = [p.to_dict() for p in self.product_database]
        if self.saved_menus is not None:
            data["savedMenus"] = [m.to_dict() for m in self.saved_menus]
        return data
