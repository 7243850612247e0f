import pytest

from nooda.models import Component, Product, ProductCategory, PROCESS_PRODUCTION, PROCESS_SALE
from nooda.services.catalog_service import (
    CatalogConflict,
    DEMO_COMPONENTS,
    DEMO_PRODUCTS,
    create_category,
    create_component,
    seed_demo_catalog,
)
from nooda.services.errors import ValidationError
from nooda.services.recipe_service import resolve_recipe


class TestDemoSeed:
    """seed_demo_catalog creates the demo catalog once."""

    def test_is_idempotent(self, db_session):
        first = seed_demo_catalog()
        second = seed_demo_catalog()

        assert first == {"components": len(DEMO_COMPONENTS), "products": len(DEMO_PRODUCTS)}
        assert second == {"components": 0, "products": 0}
        assert db_session.query(Component).count() == len(DEMO_COMPONENTS)

    def test_builds_recipes(self, db_session):
        seed_demo_catalog()

        pro = db_session.query(Product).filter_by(sku="DCP-PRO").one()
        names = {c.id: c.name for c in db_session.query(Component).all()}

        production = [names[l.component_id] for l in resolve_recipe(pro.id, PROCESS_PRODUCTION)]
        sale = [names[l.component_id] for l in resolve_recipe(pro.id, PROCESS_SALE)]
        assert production == ["Botol Pro", "Seal Pro", "Sprayer Pro", "Tutup Botol Pro"]
        assert sale == ["Kardus Kecil", "Bubble Wrap", "Lakban Fragile"]

    def test_keeps_existing_stock(self, db_session):
        seed_demo_catalog()
        bottle = db_session.query(Component).filter_by(name="Botol Mini").one()
        bottle.stock = 7
        db_session.commit()

        seed_demo_catalog()

        assert db_session.query(Component).filter_by(name="Botol Mini").one().stock == 7


class TestCatalogCreate:
    """Duplicate names surface as CatalogConflict, not database errors."""

    def test_component_rejects_duplicates(self, db_session):
        create_component("Botol Mini")
        db_session.commit()

        with pytest.raises(CatalogConflict):
            create_component("Botol Mini")

    def test_component_rejects_negative_stock(self, db_session):
        with pytest.raises(ValidationError):
            create_component("Seal Pro", stock=-1)

    def test_category_rejects_duplicates(self, db_session):
        create_category("Disinfectant")
        db_session.commit()

        with pytest.raises(CatalogConflict) as exc_info:
            create_category(" Disinfectant ")

        assert exc_info.value.http_status == 409
        assert db_session.query(ProductCategory).count() == 1

    def test_category_rejects_blank_name(self, db_session):
        with pytest.raises(ValidationError):
            create_category("   ")
