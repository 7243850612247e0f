from __future__ import annotations

from ..extensions import db
from nooda.time_utils import to_utc_z


PROCESS_PRODUCTION = "PRODUCTION"
PROCESS_SALE = "SALE"
PROCESS_TYPES = (PROCESS_PRODUCTION, PROCESS_SALE)


class ProductCategory(db.Model):
    """Optional display grouping for finished products."""
    __tablename__ = "product_categories"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "sort_order": self.sort_order}


class Component(db.Model):
    """
    Raw component / packaging material.

    STOCK RULES:
    - stock is an integer quantity and may never go negative (CHECK constraint
      plus conditional updates in the stock repository).
    - stock is only mutated through the stock repository (ledger runs and
      manual adjustments); components are never deleted in normal operation.
    """
    __tablename__ = "components"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_components_stock_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human key: unique, shown in every impact summary line
    name = db.Column(db.String(255), nullable=False, unique=True)
    stock = db.Column(db.Integer, nullable=False, default=0)
    unit = db.Column(db.String(32), nullable=False, default="pcs")

    # Overrides STOCK_WARNING_LIMIT when set
    warning_limit = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Component id={self.id} name={self.name!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "stock": self.stock,
            "unit": self.unit,
            "warning_limit": self.warning_limit,
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """
    Finished product.

    SKU is the stable product code. Recipes are attached by product id, never
    by SKU, so new SKUs need reference data only (no code changes).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.Index("ix_products_sort", "sort_order", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    sku = db.Column(db.String(64), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=False)
    stock = db.Column(db.Integer, nullable=False, default=0)

    category_id = db.Column(db.Integer, db.ForeignKey("product_categories.id"), nullable=True, index=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    warning_limit = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("ProductCategory", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "stock": self.stock,
            "category_id": self.category_id,
            "sort_order": self.sort_order,
            "warning_limit": self.warning_limit,
            "updated_at": to_utc_z(self.updated_at),
        }


class RecipeEntry(db.Model):
    """
    Bill-of-materials row: quantity_needed of a component per unit of product.

    PRODUCTION recipes are consumed when a product is made (bottles, seals);
    SALE recipes are consumed when it is sold (boxes, tape, bubble wrap).

    At most one row per (product, component, process_type); position gives the
    recipe order used in impact summaries.
    """
    __tablename__ = "recipe_entries"
    __table_args__ = (
        db.UniqueConstraint(
            "product_id", "component_id", "process_type",
            name="uq_recipe_entries_product_component_process",
        ),
        db.CheckConstraint("quantity_needed > 0", name="ck_recipe_entries_quantity_positive"),
        db.Index("ix_recipe_entries_product_process", "product_id", "process_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    component_id = db.Column(db.Integer, db.ForeignKey("components.id"), nullable=False, index=True)
    quantity_needed = db.Column(db.Integer, nullable=False)
    process_type = db.Column(db.String(16), nullable=False)  # PRODUCTION, SALE
    position = db.Column(db.Integer, nullable=False, default=0)

    product = db.relationship("Product", backref=db.backref("recipe_entries", lazy=True))
    component = db.relationship("Component")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "component_id": self.component_id,
            "quantity_needed": self.quantity_needed,
            "process_type": self.process_type,
            "position": self.position,
        }
