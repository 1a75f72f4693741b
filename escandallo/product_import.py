"""
Bulk product import (JSON or CSV price lists).

An import replaces the whole product database, so every row is validated
before anything is applied. Invalid rows are reported together and nothing
is imported.

Accepted fields per row:
- name: product name (required)
- unit: unit the price refers to (required, lower-cased)
- pricePerUnit / price_per_unit / precio: number or decimal-comma string, >= 0
- category / familia: product family (upper-cased, defaults to OTROS)
- allergens / alergenos: list, or text separated by "," ";" or "|"
- id: optional, generated when missing
"""

import csv
import io
import json
import logging
import re
import uuid
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .data.models import ALLERGEN_LIST, UNKNOWN_FAMILY, Product

logger = logging.getLogger(__name__)

_ALLERGENS_BY_KEY = {a.lower(): a for a in ALLERGEN_LIST}
_ALLERGEN_SEPARATORS = re.compile(r"[,;|]")


class ProductImportError(ValueError):
    """Raised when an import payload contains invalid rows."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("Invalid product import: " + "; ".join(errors))


class ProductRow(BaseModel):
    """One row of an imported price list."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, allow_inf_nan=False)

    id: Optional[str] = None
    name: str = Field(min_length=1)
    unit: str = Field(min_length=1)
    price_per_unit: float = Field(
        ge=0,
        validation_alias=AliasChoices("pricePerUnit", "price_per_unit", "precio"),
    )
    category: str = Field(
        default=UNKNOWN_FAMILY,
        validation_alias=AliasChoices("category", "familia"),
    )
    allergens: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("allergens", "alergenos"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        """Ids may arrive as numbers from spreadsheets."""
        if v is None or v == "":
            return None
        return str(v)

    @field_validator("unit")
    @classmethod
    def normalize_unit(cls, v: str) -> str:
        return v.lower()

    @field_validator("price_per_unit", mode="before")
    @classmethod
    def parse_decimal_comma(cls, v):
        """Accept "1,20" as well as 1.20."""
        if isinstance(v, str):
            text = v.strip().replace(",", ".", 1)
            if not text:
                raise ValueError("price is empty")
            return text
        return v

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return UNKNOWN_FAMILY
        return str(v).strip().upper()

    @field_validator("allergens", mode="before")
    @classmethod
    def split_allergens(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [part for part in _ALLERGEN_SEPARATORS.split(v) if part.strip()]
        return v

    @field_validator("allergens")
    @classmethod
    def canonical_allergens(cls, v: List[str]) -> List[str]:
        """Map allergen names onto the regulated vocabulary spelling."""
        canonical = []
        for name in v:
            key = name.strip().lower()
            if key not in _ALLERGENS_BY_KEY:
                raise ValueError(f"unknown allergen '{name.strip()}'")
            allergen = _ALLERGENS_BY_KEY[key]
            if allergen not in canonical:
                canonical.append(allergen)
        return canonical

    def to_product(self) -> Product:
        """Convert to a Product, generating an id when missing."""
        return Product(
            id=self.id or f"p-{uuid.uuid4().hex[:12]}",
            name=self.name,
            unit=self.unit,
            price_per_unit=self.price_per_unit,
            category=self.category,
            allergens=list(self.allergens),
        )


def validate_rows(rows: List[dict]) -> List[Product]:
    """
    Validate raw rows and convert them to products.

    Args:
        rows: Row dictionaries (row numbers in errors are 1-based)

    Returns:
        Products in input order

    Raises:
        ProductImportError: If any row is invalid
    """
    products = []
    errors = []
    for index, row in enumerate(rows, start=1):
        if not isinstance(row, dict):
            errors.append(f"row {index}: expected an object")
            continue
        try:
            products.append(ProductRow.model_validate(row).to_product())
        except ValidationError as e:
            for err in e.errors():
                location = ".".join(str(part) for part in err["loc"]) or "row"
                errors.append(f"row {index}: {location}: {err['msg']}")

    if errors:
        logger.warning(f"[IMPORT] rejected {len(errors)} error(s) in {len(rows)} rows")
        raise ProductImportError(errors)

    logger.info(f"[IMPORT] validated {len(products)} products")
    return products


def parse_products_json(text: str) -> List[Product]:
    """Parse a JSON price list (a list of rows, or {"products": [...]})."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ProductImportError([f"invalid JSON: {e.msg} (line {e.lineno})"]) from e

    if isinstance(data, dict):
        data = data.get("products", data.get("productDatabase"))
    if not isinstance(data, list):
        raise ProductImportError(["expected a list of products"])
    return validate_rows(data)


def parse_products_csv(text: str, delimiter: str = ";") -> List[Product]:
    """Parse a CSV price list with a header row."""
    reader = csv.DictReader(io.StringIO(text), delimiter=delimiter)
    if not reader.fieldnames:
        raise ProductImportError(["CSV has no header row"])
    rows = [
        {(k or "").strip(): v for k, v in row.items() if k}
        for row in reader
    ]
    return validate_rows(rows)
