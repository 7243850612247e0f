# Overview: Catalog reference data; components, products, categories and the demo seed.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Component, Product, ProductCategory, PROCESS_PRODUCTION, PROCESS_SALE
from ..validation import coerce_int
from .errors import LedgerError, ValidationError
from .recipe_service import set_recipe


class CatalogConflict(LedgerError):
    """Duplicate component name, category name or product SKU."""
    code = "CATALOG_CONFLICT"
    http_status = 409


def _non_negative(value, field: str) -> int:
    number = coerce_int(value, field)
    if number < 0:
        raise ValidationError(f"{field} must be >= 0")
    return number


def create_component(name: str, *, stock: int = 0, unit: str = "pcs", warning_limit: int | None = None) -> Component:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name cannot be blank")

    component = Component(
        name=name,
        stock=_non_negative(stock, "stock"),
        unit=(unit or "pcs").strip(),
        warning_limit=None if warning_limit is None else _non_negative(warning_limit, "warning_limit"),
    )
    db.session.add(component)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise CatalogConflict(f"Component name already exists: {name}")
    return component


def create_category(name: str, *, sort_order: int = 0) -> ProductCategory:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name cannot be blank")

    category = ProductCategory(name=name, sort_order=sort_order)
    db.session.add(category)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise CatalogConflict(f"Category name already exists: {name}")
    return category


def create_product(
    sku: str,
    name: str,
    *,
    stock: int = 0,
    category_id: int | None = None,
    sort_order: int = 0,
    warning_limit: int | None = None,
) -> Product:
    sku = (sku or "").strip()
    name = (name or "").strip()
    if not sku or not name:
        raise ValidationError("sku and name cannot be blank")

    product = Product(
        sku=sku,
        name=name,
        stock=_non_negative(stock, "stock"),
        category_id=category_id,
        sort_order=sort_order,
        warning_limit=None if warning_limit is None else _non_negative(warning_limit, "warning_limit"),
    )
    db.session.add(product)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise CatalogConflict(f"Product SKU already exists: {sku}")
    return product


# name -> (stock, unit, warning_limit)
DEMO_COMPONENTS = {
    "Botol Mini": (100, "pcs", None),
    "Botol Core": (100, "pcs", None),
    "Botol Pro": (100, "pcs", None),
    "Seal Pro": (100, "pcs", None),
    "Sprayer Pro": (100, "pcs", None),
    "Tutup Botol Pro": (100, "pcs", None),
    "Kardus Kecil": (50, "pcs", None),
    "Bubble Wrap": (10, "roll", 2),
    "Lakban Bening": (10, "roll", 2),
    "Lakban Fragile": (10, "roll", 2),
}

DEMO_CATEGORY = "DCP Disinfectant"

# sku -> (name, sort_order, production recipe, sale recipe)
DEMO_PRODUCTS = {
    "DCP-MINI": ("DCP Mini", 0, [("Botol Mini", 1)], [("Kardus Kecil", 1), ("Lakban Bening", 1)]),
    "DCP-CORE": ("DCP Core", 1, [("Botol Core", 1)], [("Kardus Kecil", 1), ("Lakban Bening", 1)]),
    "DCP-PRO": (
        "DCP Pro",
        2,
        [("Botol Pro", 1), ("Seal Pro", 1), ("Sprayer Pro", 1), ("Tutup Botol Pro", 1)],
        [("Kardus Kecil", 1), ("Bubble Wrap", 1), ("Lakban Fragile", 1)],
    ),
}


def seed_demo_catalog() -> dict:
    """
    Idempotently create the demo catalog and its recipes, then commit.

    Existing rows (matched by component name / product SKU) keep their stock.
    """
    components = {c.name: c for c in db.session.query(Component).all()}
    created = {"components": 0, "products": 0}

    for name, (stock, unit, warning_limit) in DEMO_COMPONENTS.items():
        if name not in components:
            components[name] = create_component(name, stock=stock, unit=unit, warning_limit=warning_limit)
            created["components"] += 1

    category = db.session.query(ProductCategory).filter_by(name=DEMO_CATEGORY).first()
    if category is None:
        category = create_category(DEMO_CATEGORY)

    products = {p.sku: p for p in db.session.query(Product).all()}
    for sku, (name, sort_order, production, sale) in DEMO_PRODUCTS.items():
        product = products.get(sku)
        if product is None:
            product = create_product(sku, name, sort_order=sort_order, category_id=category.id)
            created["products"] += 1
        set_recipe(product.id, PROCESS_PRODUCTION, [(components[n].id, q) for n, q in production])
        set_recipe(product.id, PROCESS_SALE, [(components[n].id, q) for n, q in sale])

    db.session.commit()
    return created
