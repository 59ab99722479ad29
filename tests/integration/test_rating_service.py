import threading
import pytest
from core.exceptions import ForbiddenError, NotFoundError, ValidationError
from models.enums import UserRole
from models.orders import Order
from models.products import Product
from models.reviews import Review
from models.users import User
from models.vendors import Vendor
from schemas.rating_schemas import RatingRequest
from services.rating_service import RatingService
from tests.helpers import actor_for
from utils.deps import Actor


def test_rating_updates_aggregates(session, delivered_order, customer, products, vendor, partner):
    milk, _ = products

    result = RatingService(session).record_rating(
        actor_for(customer), delivered_order.id,
        RatingRequest(product_rating=4, delivery_rating=5, product_feedback="Fresh", delivery_feedback="Quick")
    )

    assert result.rated_products == [milk.id]
    assert result.delivery_rating == 5

    session.expire_all()
    product = session.get(Product, milk.id)
    assert product.average_rating == 4.0
    assert product.total_ratings == 1

    store = session.get(Vendor, vendor.id)
    assert store.average_rating == 4.0
    assert store.total_ratings == 1
    assert store.total_orders == 1

    order = session.get(Order, delivered_order.id)
    assert order.rating == 4
    assert order.review == "Fresh"
    assert order.delivery_rating == 5
    assert order.delivery_feedback == "Quick"

    assert RatingService(session).partner_rating(partner.id) == 5.0


def test_rating_again_updates_review_in_place(session, delivered_order, customer, products):
    milk, _ = products
    service = RatingService(session)

    service.record_rating(actor_for(customer), delivered_order.id, RatingRequest(product_rating=4))
    service.record_rating(actor_for(customer), delivered_order.id, RatingRequest(product_rating=2))

    reviews = session.query(Review).filter(Review.product_id == milk.id).all()
    assert len(reviews) == 1
    assert reviews[0].rating == 2

    session.expire_all()
    product = session.get(Product, milk.id)
    assert product.average_rating == 2.0
    assert product.total_ratings == 1


def test_out_of_range_ratings_are_clamped(session, delivered_order, customer, products):
    milk, _ = products

    result = RatingService(session).record_rating(
        actor_for(customer), delivered_order.id, RatingRequest(product_rating=9, delivery_rating=0)
    )

    assert result.delivery_rating == 1
    session.expire_all()
    assert session.get(Product, milk.id).average_rating == 5.0


def test_item_ratings(session, delivered_order, customer, products):
    milk, rice = products
    service = RatingService(session)

    with pytest.raises(ValidationError):
        service.record_rating(
            actor_for(customer), delivered_order.id,
            RatingRequest(item_ratings=[{"product_id": rice.id, "rating": 3}])
        )

    result = service.record_rating(
        actor_for(customer), delivered_order.id,
        RatingRequest(item_ratings=[{"product_id": milk.id, "rating": 3, "comment": "Okay"}])
    )
    assert result.rated_products == [milk.id]
    assert session.query(Review).one().comment == "Okay"


def test_only_delivered_orders_can_be_rated(session, ready_order, customer):
    with pytest.raises(ValidationError):
        RatingService(session).record_rating(actor_for(customer), ready_order.id, RatingRequest(product_rating=5))


def test_only_the_buyer_can_rate(session, delivered_order, other_customer):
    with pytest.raises(ForbiddenError):
        RatingService(session).record_rating(
            actor_for(other_customer), delivered_order.id, RatingRequest(product_rating=5)
        )


def test_empty_rating_rejected(session, delivered_order, customer):
    with pytest.raises(ValidationError):
        RatingService(session).record_rating(actor_for(customer), delivered_order.id, RatingRequest())


def test_partner_without_ratings(session, partner):
    assert RatingService(session).partner_rating(partner.id) is None


def test_submit_review_creates_then_replaces(session, customer, products, vendor):
    milk, _ = products
    service = RatingService(session)

    first = service.submit_review(actor_for(customer), milk.id, 5, comment="Creamy")
    assert first.created is True
    assert first.average_rating == 5.0
    assert first.total_ratings == 1

    second = service.submit_review(actor_for(customer), milk.id, 3)
    assert second.created is False
    assert second.review_id == first.review_id
    assert second.average_rating == 3.0
    assert second.total_ratings == 1

    review = session.query(Review).one()
    assert review.rating == 3
    assert review.comment == ""
    assert review.vendor_id == vendor.id
    assert review.order_id is None

    session.expire_all()
    assert session.get(Vendor, vendor.id).total_ratings == 1


def test_submit_review_averages_across_customers(session, customer, other_customer, products):
    milk, _ = products
    service = RatingService(session)

    service.submit_review(actor_for(customer), milk.id, 5)
    result = service.submit_review(actor_for(other_customer), milk.id, 2)

    assert result.average_rating == 3.5
    assert result.total_ratings == 2


@pytest.mark.parametrize("rating", [0, 6, -1])
def test_submit_review_rejects_out_of_range(session, customer, products, rating):
    milk, _ = products

    with pytest.raises(ValidationError):
        RatingService(session).submit_review(actor_for(customer), milk.id, rating)

    assert session.query(Review).count() == 0


def test_submit_review_unknown_product(session, customer):
    with pytest.raises(NotFoundError):
        RatingService(session).submit_review(actor_for(customer), 999999, 4)


def test_submit_review_links_own_order(session, delivered_order, customer, other_customer, products):
    milk, rice = products
    service = RatingService(session)

    with pytest.raises(ForbiddenError):
        service.submit_review(actor_for(other_customer), milk.id, 4, order_id=delivered_order.id)
    with pytest.raises(ValidationError):
        service.submit_review(actor_for(customer), rice.id, 4, order_id=delivered_order.id)

    service.submit_review(actor_for(customer), milk.id, 4, order_id=delivered_order.id)
    assert session.query(Review).one().order_id == delivered_order.id


def test_product_reviews_summary(session, customer, other_customer, products):
    milk, _ = products
    service = RatingService(session)
    service.submit_review(actor_for(customer), milk.id, 5, comment="Creamy")
    service.submit_review(actor_for(other_customer), milk.id, 4)

    reviews, total, summary = service.product_reviews(milk.id, page=1, limit=1)

    assert total == 2
    assert len(reviews) == 1
    assert summary.average_rating == 4.5
    assert summary.total_reviews == 2
    assert summary.distribution == {1: 0, 2: 0, 3: 0, 4: 1, 5: 1}


def test_concurrent_reviews_keep_aggregate_exact(session, session_factory, products):
    milk, _ = products
    shoppers = [User(name=f"Shopper {i}", email=f"shopper{i}@example.com", role=UserRole.CUSTOMER)
                for i in range(5)]
    session.add_all(shoppers)
    session.commit()
    scores = {shopper.id: score for shopper, score in zip(shoppers, [1, 2, 3, 4, 5])}

    errors = []
    start = threading.Barrier(len(scores))

    def review(user_id, score):
        db = session_factory()
        try:
            start.wait()
            RatingService(db).submit_review(Actor(user_id=user_id, role=UserRole.CUSTOMER), milk.id, score)
        except Exception as exc:
            errors.append(exc)
        finally:
            db.close()

    threads = [threading.Thread(target=review, args=item) for item in scores.items()]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    session.expire_all()
    product = session.get(Product, milk.id)
    assert product.total_ratings == 5
    assert product.average_rating == 3.0
