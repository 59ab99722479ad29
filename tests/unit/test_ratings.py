from decimal import Decimal
from sqlalchemy.dialects import postgresql
from models.products import Product
from services.delivery_service import earnings_for
from services.rating_service import average, clamp_rating, row_lock


def test_clamp_rating_bounds():
    assert clamp_rating(0) == 1
    assert clamp_rating(-3) == 1
    assert clamp_rating(9) == 5


def test_clamp_rating_rounds_half_up():
    assert clamp_rating(3.5) == 4
    assert clamp_rating(3.4) == 3


def test_average_one_decimal():
    assert average(Decimal("4.25")) == 4.3
    assert average(4) == 4.0
    assert average(None) == 0.0


def test_earnings_follow_delivery_fee():
    assert earnings_for(Decimal("30")) == Decimal("30")


def test_free_delivery_still_pays_partner():
    assert earnings_for(Decimal("0")) == Decimal("30")
    assert earnings_for(None) == Decimal("30")


def test_row_lock_selects_for_update():
    statement = row_lock(Product, 7)
    sql = str(statement.compile(dialect=postgresql.dialect()))

    assert sql.endswith("FOR UPDATE")
    assert "products.id = " in sql
