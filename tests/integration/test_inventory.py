import threading
import pytest
from core.exceptions import InsufficientStockError, NotFoundError, ValidationError
from models.inventory_changes import InventoryChange
from models.orders import Order
from models.products import Product
from services.inventory_service import InventoryService
from services.order_service import OrderService
from tests.helpers import actor_for, order_request


def test_order_decrements_stock_and_records_changes(session, place_order, products):
    milk, rice = products

    order = place_order([(milk, 3), (rice, 2)])

    session.expire_all()
    assert session.get(Product, milk.id).stock == 7
    assert session.get(Product, rice.id).stock == 3

    changes = session.query(InventoryChange).filter(InventoryChange.order_id == order.id).all()
    assert sorted((c.product_id, c.change_amount) for c in changes) == sorted([(milk.id, 3), (rice.id, 2)])


def test_insufficient_stock_leaves_everything_untouched(session, place_order, products):
    milk, rice = products

    with pytest.raises(InsufficientStockError) as exc_info:
        place_order([(milk, 2), (rice, 6)])

    assert exc_info.value.message == "Insufficient stock for Rice"
    assert exc_info.value.available == 5

    session.expire_all()
    assert session.get(Product, milk.id).stock == 10
    assert session.get(Product, rice.id).stock == 5
    assert session.query(Order).count() == 0


def test_repeated_lines_are_merged(session, place_order, products):
    milk, _ = products

    with pytest.raises(InsufficientStockError):
        place_order([(milk, 6), (milk, 5)])

    order = place_order([(milk, 4), (milk, 4)])
    assert [(item.product_id, item.quantity) for item in order.items] == [(milk.id, 8)]


def test_unknown_product(session, products, vendor):
    with pytest.raises(NotFoundError):
        InventoryService(session).reserve([(9999, 1)], vendor_id=vendor.id)


def test_product_from_another_vendor_rejected(session, products, vendor):
    milk, _ = products

    with pytest.raises(ValidationError):
        InventoryService(session).reserve([(milk.id, 1)], vendor_id=vendor.id + 1)


def test_concurrent_orders_never_oversell(session, session_factory, customer, vendor, products):
    """Eight buyers race for five bags of rice: exactly five orders go through."""
    _, rice = products
    request = order_request(vendor, [(rice, 1)])
    actor = actor_for(customer)

    outcomes = []
    lock = threading.Lock()
    start = threading.Barrier(8)

    def buy():
        db = session_factory()
        try:
            start.wait()
            OrderService(db).create_order(actor, request)
            result = "ok"
        except InsufficientStockError:
            result = "out_of_stock"
        finally:
            db.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=buy) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert outcomes.count("ok") == 5
    assert outcomes.count("out_of_stock") == 3

    session.expire_all()
    assert session.get(Product, rice.id).stock == 0
    assert session.query(Order).count() == 5
