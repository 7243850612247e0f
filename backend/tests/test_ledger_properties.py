"""
Seeded random checks of the ledger invariants.

Random catalogs where several products share SALE-recipe components, random
carts against random stock. The expected outcome is computed independently
with whole-cart aggregation; a per-line check would pass some of these carts.
"""
import random

import pytest

from nooda.models import Component, Product, PROCESS_PRODUCTION, PROCESS_SALE
from nooda.services import ledger_service
from nooda.services.errors import InsufficientStock
from nooda.services.recipe_service import resolve_recipe
from nooda.validation import SaleItem

from conftest import make_component, make_product, make_recipe, stock_of


SEEDS = list(range(12))


def _random_catalog(rng):
    components = [make_component(f"Comp {i}", rng.randint(0, 15)) for i in range(4)]
    products = []
    for i in range(3):
        product = make_product(f"SKU-{i}", f"Prod {i}", stock=rng.randint(0, 10), sort_order=i)
        picked = rng.sample(components, rng.randint(1, 3))
        make_recipe(product, PROCESS_SALE, [(c, rng.randint(1, 3)) for c in picked])
        make_recipe(product, PROCESS_PRODUCTION, [(c, rng.randint(1, 2)) for c in picked])
        products.append(product)
    return components, products


def _snapshot(db_session):
    return {
        "components": {c.id: stock_of(c) for c in db_session.query(Component).all()},
        "products": {p.id: stock_of(p) for p in db_session.query(Product).all()},
    }


def _recipe_map(product, process_type):
    return {l.component_id: l.quantity_per_unit for l in resolve_recipe(product.id, process_type)}


class TestSaleProperties:
    """Sales match an independently aggregated expectation."""

    @pytest.mark.parametrize("seed", SEEDS)
    def test_random_sale_matches_aggregated_expectation(self, db_session, seed):
        rng = random.Random(seed)
        _, products = _random_catalog(rng)
        cart = [SaleItem(p.id, rng.randint(1, 4)) for p in rng.choices(products, k=rng.randint(1, 4))]

        before = _snapshot(db_session)

        product_need, component_need = {}, {}
        for item in cart:
            product_need[item.product_id] = product_need.get(item.product_id, 0) + item.quantity
        for product in products:
            qty = product_need.get(product.id, 0)
            for cid, per_unit in _recipe_map(product, PROCESS_SALE).items():
                if qty:
                    component_need[cid] = component_need.get(cid, 0) + per_unit * qty

        feasible = all(before["products"][pid] >= q for pid, q in product_need.items()) and all(
            before["components"][cid] >= q for cid, q in component_need.items()
        )

        if feasible:
            ledger_service.sell(cart)
            after = _snapshot(db_session)
            for pid, stock in before["products"].items():
                assert after["products"][pid] == stock - product_need.get(pid, 0)
            for cid, stock in before["components"].items():
                assert after["components"][cid] == stock - component_need.get(cid, 0)
        else:
            with pytest.raises(InsufficientStock):
                ledger_service.sell(cart)
            assert _snapshot(db_session) == before

    @pytest.mark.parametrize("seed", SEEDS)
    def test_shared_component_gap_rejects_whole_cart(self, db_session, seed):
        """Each line fits the shared component on its own; the cart total does not."""
        rng = random.Random(2000 + seed)
        per_unit_a, per_unit_b = rng.randint(1, 3), rng.randint(1, 3)
        qty_a, qty_b = rng.randint(1, 4), rng.randint(1, 4)
        need_a, need_b = per_unit_a * qty_a, per_unit_b * qty_b
        shared_stock = max(need_a, need_b) + rng.randint(0, min(need_a, need_b) - 1)

        shared = make_component("Shared Tape", shared_stock, unit="roll")
        extra = make_component("Extra Box", 100)
        product_a = make_product("SKU-A", "Prod A", stock=qty_a + rng.randint(0, 5))
        product_b = make_product("SKU-B", "Prod B", stock=qty_b + rng.randint(0, 5))
        make_recipe(product_a, PROCESS_SALE, [(shared, per_unit_a)])
        make_recipe(product_b, PROCESS_SALE, [(shared, per_unit_b), (extra, rng.randint(1, 3))])

        # every line passes a per-line check; only the aggregate falls short
        assert need_a <= shared_stock
        assert need_b <= shared_stock
        assert need_a + need_b > shared_stock
        for product, qty in ((product_a, qty_a), (product_b, qty_b)):
            ledger_service.preview_sell([SaleItem(product.id, qty)])

        cart = [SaleItem(product_a.id, qty_a), SaleItem(product_b.id, qty_b)]
        rng.shuffle(cart)
        before = _snapshot(db_session)

        with pytest.raises(InsufficientStock) as exc_info:
            ledger_service.sell(cart)

        assert exc_info.value.details["products"] == []
        assert exc_info.value.details["components"] == [{
            "id": shared.id,
            "name": "Shared Tape",
            "required": need_a + need_b,
            "available": shared_stock,
        }]
        assert _snapshot(db_session) == before


class TestProductionProperties:
    """Random production sequences never drive stock negative."""

    @pytest.mark.parametrize("seed", SEEDS)
    def test_random_production_never_negative(self, db_session, seed):
        rng = random.Random(1000 + seed)
        _, products = _random_catalog(rng)

        for _ in range(6):
            product = rng.choice(products)
            quantity = rng.randint(1, 6)
            before = _snapshot(db_session)
            recipe = _recipe_map(product, PROCESS_PRODUCTION)
            feasible = all(before["components"][cid] >= per * quantity for cid, per in recipe.items())

            if feasible:
                ledger_service.produce(product.id, quantity)
                after = _snapshot(db_session)
                assert after["products"][product.id] == before["products"][product.id] + quantity
                for cid, per in recipe.items():
                    assert after["components"][cid] == before["components"][cid] - per * quantity
            else:
                with pytest.raises(InsufficientStock):
                    ledger_service.produce(product.id, quantity)
                assert _snapshot(db_session) == before

            snapshot = _snapshot(db_session)
            assert all(v >= 0 for v in snapshot["components"].values())
            assert all(v >= 0 for v in snapshot["products"].values())
