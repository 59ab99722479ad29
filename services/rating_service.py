from dataclasses import dataclass, field
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from models.enums import OrderStatus
from models.orders import Order
from models.products import Product
from models.reviews import Review
from models.vendors import Vendor
from schemas.rating_schemas import RatingRequest
from services.order_service import OrderService
from services.unit_of_work import transaction
from utils.deps import Actor
from utils.logger import get_logger
from utils.money import round_half_up

logger = get_logger(__name__)

MIN_RATING = 1
MAX_RATING = 5


@dataclass
class RatingResult:
    order_id: int
    rated_products: list[int] = field(default_factory=list)
    delivery_rating: int | None = None


@dataclass
class ReviewResult:
    review_id: int
    product_id: int
    rating: int
    created: bool
    average_rating: float
    total_ratings: int


@dataclass
class RatingSummary:
    average_rating: float
    total_reviews: int
    distribution: dict[int, int]


def clamp_rating(value) -> int:
    """Round half-up and pin into 1..5."""
    return min(MAX_RATING, max(MIN_RATING, int(round_half_up(value))))


def average(value) -> float:
    if value is None:
        return 0.0
    return float(round_half_up(value, "0.1"))


def row_lock(model, row_id: int):
    """SELECT ... FOR UPDATE on one row; a no-op on backends without row locks."""
    return select(model.id).where(model.id == row_id).with_for_update()


class RatingService:
    """
    Rating aggregator.

    Product and vendor aggregates are recomputed from the full review set on
    every rating rather than nudged incrementally, so edited reviews never
    leave the averages drifting.
    """

    def __init__(self, db: Session):
        self.db = db
        self.orders = OrderService(db)

    def _ratings_by_product(self, order: Order, request: RatingRequest) -> dict[int, tuple[int, str]]:
        product_ids = list(dict.fromkeys(item.product_id for item in order.items))

        if request.item_ratings:
            ratings = {}
            for item in request.item_ratings:
                if item.product_id not in product_ids:
                    raise ValidationError(f"Product {item.product_id} is not part of this order")
                ratings[item.product_id] = (
                    clamp_rating(item.rating),
                    item.comment or request.product_feedback or "",
                )
            return ratings

        if request.product_rating is not None:
            rating = clamp_rating(request.product_rating)
            return {product_id: (rating, request.product_feedback or "") for product_id in product_ids}

        return {}

    def record_rating(self, actor: Actor, order_ref: int | str, request: RatingRequest) -> RatingResult:
        """
        Store a customer's feedback on a delivered order.

        Flow:
        1. Order exists, belongs to the caller and is delivered
        2. Upsert one review per rated product (keyed by user + product)
        3. Recompute each rated product's and the vendor's aggregates
        4. Store the order-level and delivery ratings
        """
        if request.product_rating is None and request.delivery_rating is None and not request.item_ratings:
            raise ValidationError("At least one rating is required")

        order = self.orders.find(order_ref)
        if order.customer_id != actor.user_id:
            raise ForbiddenError("Not your order")
        if order.status != OrderStatus.DELIVERED:
            raise ValidationError("Can only rate delivered orders")

        ratings = self._ratings_by_product(order, request)
        result = RatingResult(order_id=order.id, rated_products=list(ratings))

        with transaction(self.db, "Failed to submit rating", order_id=order.id):
            for product_id, (rating, comment) in ratings.items():
                self._upsert_review(actor.user_id, product_id, order.vendor_id, order.id, rating, comment)
            self._flush_reviews()

            # Locks are taken in id order, products before the vendor
            for product_id in sorted(ratings):
                self.refresh_product_aggregate(product_id)
            if ratings:
                self.refresh_vendor_aggregate(order.vendor_id)

            if request.product_rating is not None:
                order.rating = clamp_rating(request.product_rating)
                order.review = request.product_feedback or ""

            # Nobody to rate when the order was never assigned
            if request.delivery_rating is not None and order.delivery_partner_id is not None:
                result.delivery_rating = clamp_rating(request.delivery_rating)
                order.delivery_rating = result.delivery_rating
                order.delivery_feedback = request.delivery_feedback or ""

        logger.info(
            "Order rated",
            extra={"order_id": order.id, "products": result.rated_products,
                   "delivery_rating": result.delivery_rating}
        )
        return result

    def _upsert_review(self, user_id: int, product_id: int, vendor_id: int, order_id: int | None,
                       rating: int, comment: str) -> Review:
        review = self.db.query(Review).filter(
            Review.user_id == user_id,
            Review.product_id == product_id
        ).one_or_none()

        if review is None:
            review = Review(
                user_id=user_id,
                product_id=product_id,
                vendor_id=vendor_id,
                order_id=order_id,
                rating=rating,
                comment=comment,
            )
            self.db.add(review)
            return review

        review.rating = rating
        review.comment = comment
        if order_id is not None:
            review.order_id = order_id
        return review

    def _flush_reviews(self):
        try:
            self.db.flush()
        except IntegrityError as exc:
            # Only reachable if the same customer reviews the same product twice at once
            raise ConflictError("Rating is already being recorded, try again") from exc

    def submit_review(self, actor: Actor, product_id: int, rating: int, comment: str | None = None,
                      order_id: int | None = None) -> ReviewResult:
        """
        Create or replace the caller's review of a product outside any order
        rating. Out-of-range ratings are rejected here rather than clamped.
        """
        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")

        product = self.db.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product")

        if order_id is not None:
            order = self.orders.find(order_id)
            if order.customer_id != actor.user_id:
                raise ForbiddenError("Not your order")
            if product_id not in {item.product_id for item in order.items}:
                raise ValidationError(f"Product {product_id} is not part of this order")

        with transaction(self.db, "Failed to submit review", product_id=product_id):
            review = self._upsert_review(actor.user_id, product_id, product.vendor_id, order_id,
                                         rating, comment or "")
            created = review.id is None
            self._flush_reviews()

            self.refresh_product_aggregate(product_id)
            self.refresh_vendor_aggregate(product.vendor_id)
            review_id = review.id

        self.db.refresh(product)
        logger.info(
            "Review submitted",
            extra={"product_id": product_id, "rating": rating, "new_review": created}
        )
        return ReviewResult(
            review_id=review_id,
            product_id=product_id,
            rating=rating,
            created=created,
            average_rating=product.average_rating,
            total_ratings=product.total_ratings,
        )

    def product_reviews(self, product_id: int, page: int = 1, limit: int = 10):
        """A page of a product's reviews, newest first, plus its rating summary."""
        if self.db.get(Product, product_id) is None:
            raise NotFoundError("Product")

        query = self.db.query(Review).filter(Review.product_id == product_id)
        total = query.count()
        reviews = (
            query.order_by(Review.created_at.desc(), Review.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        distribution = {score: 0 for score in range(MIN_RATING, MAX_RATING + 1)}
        rows = self.db.execute(
            select(Review.rating, func.count(Review.id))
            .where(Review.product_id == product_id)
            .group_by(Review.rating)
        ).all()
        for score, count in rows:
            distribution[score] = count
        mean = self.db.scalar(select(func.avg(Review.rating)).where(Review.product_id == product_id))

        return reviews, total, RatingSummary(average(mean), total, distribution)

    def _lock(self, model, row_id: int):
        self.db.execute(row_lock(model, row_id))

    def refresh_product_aggregate(self, product_id: int):
        # Concurrent raters queue here, so each recompute sees every committed review
        self._lock(Product, product_id)
        mean, count = self.db.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(Review.product_id == product_id)
        ).one()

        self.db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(average_rating=average(mean), total_ratings=count)
            .execution_options(synchronize_session=False)
        )

    def refresh_vendor_aggregate(self, vendor_id: int):
        self._lock(Vendor, vendor_id)
        mean, count = self.db.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(Review.vendor_id == vendor_id)
        ).one()
        delivered = self.db.scalar(
            select(func.count(Order.id)).where(
                Order.vendor_id == vendor_id,
                Order.status == OrderStatus.DELIVERED
            )
        )

        self.db.execute(
            update(Vendor)
            .where(Vendor.id == vendor_id)
            .values(average_rating=average(mean), total_ratings=count, total_orders=delivered or 0)
            .execution_options(synchronize_session=False)
        )

    def partner_rating(self, partner_id: int) -> float | None:
        """Mean delivery rating across a partner's orders, derived on demand."""
        mean = self.db.scalar(
            select(func.avg(Order.delivery_rating)).where(
                Order.delivery_partner_id == partner_id,
                Order.delivery_rating.is_not(None)
            )
        )
        if mean is None:
            return None
        return average(mean)
