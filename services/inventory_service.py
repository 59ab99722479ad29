from dataclasses import dataclass
from decimal import Decimal
from sqlalchemy import select, update
from sqlalchemy.orm import Session
from core.exceptions import InsufficientStockError, NotFoundError, ValidationError
from models.enums import InventoryReason
from models.inventory_changes import InventoryChange
from models.products import Product
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ReservedLine:
    """Stock taken for one product, with the catalogue snapshot for the order item."""
    product_id: int
    name: str
    unit_price: Decimal
    quantity: int
    unit: str | None
    image: str | None

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


class InventoryService:

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def merge_lines(lines: list[tuple[int, int]]) -> dict[int, int]:
        """Sum quantities of repeated products, keeping first-seen order."""
        merged: dict[int, int] = {}
        for product_id, quantity in lines:
            if quantity <= 0:
                raise ValidationError("Quantity must be at least 1")
            merged[product_id] = merged.get(product_id, 0) + quantity
        return merged

    def reserve(self, lines: list[tuple[int, int]], vendor_id: int | None = None) -> list[ReservedLine]:
        """
        Take stock for every line of an order, all or nothing.

        Flow:
        1. Merge duplicate product lines
        2. Check every product exists, belongs to the vendor and has enough stock
        3. Decrement each product with a conditional UPDATE (stock >= quantity)

        Step 2 fails before anything is written. If step 3 loses a race for a
        product, InsufficientStockError is raised and the caller's transaction
        rollback undoes the decrements already applied. Does not commit.
        """
        requested = self.merge_lines(lines)
        if not requested:
            raise ValidationError("Order must have at least one item")

        products = {
            product.id: product
            for product in self.db.query(Product).filter(Product.id.in_(requested.keys())).all()
        }

        for product_id, quantity in requested.items():
            product = products.get(product_id)
            if product is None:
                raise NotFoundError(f"Product {product_id}")
            if vendor_id is not None and product.vendor_id != vendor_id:
                raise ValidationError(f"{product.name} is not sold by this vendor")
            if product.stock < quantity:
                logger.warning(
                    "Stock check failed",
                    extra={"product_id": product_id, "requested": quantity, "available": product.stock}
                )
                raise InsufficientStockError(product_id, product.name, quantity, product.stock)

        reserved = []
        for product_id, quantity in requested.items():
            product = products[product_id]
            self._decrement(product, quantity)
            reserved.append(ReservedLine(
                product_id=product.id,
                name=product.name,
                unit_price=product.price,
                quantity=quantity,
                unit=product.unit,
                image=product.image_url,
            ))

        return reserved

    def _decrement(self, product: Product, quantity: int):
        result = self.db.execute(
            update(Product)
            .where(Product.id == product.id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            available = self.db.scalar(select(Product.stock).where(Product.id == product.id))
            logger.warning(
                "Stock reservation lost a race",
                extra={"product_id": product.id, "requested": quantity, "available": available}
            )
            raise InsufficientStockError(product.id, product.name, quantity, available or 0)

        # The loaded object still holds the pre-update value
        self.db.expire(product, ["stock"])

    def record_reservation(self, order_id: int, reserved: list[ReservedLine]):
        for line in reserved:
            self.db.add(InventoryChange(
                product_id=line.product_id,
                order_id=order_id,
                change_amount=line.quantity,
                reason=InventoryReason.DECREMENT,
            ))
