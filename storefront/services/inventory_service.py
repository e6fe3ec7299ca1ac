from typing import Dict, Iterable, List, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from ..core.logging import get_logger
from ..enums import TransactionType
from ..exceptions import InsufficientStockException, NotFoundException
from ..models import InventoryTransaction, Product


logger = get_logger(__name__)


class InventoryService:
    """
    Reads products and adjusts their stock.

    Adjustments never commit: they run inside the caller's unit of work so an
    order and its stock movements are persisted (or rolled back) together.
    Product rows are locked before they are read so concurrent checkouts and
    cancellations for the same product are serialized by the database.
    """

    async def get_product(self, product_id: int, db: AsyncSession) -> Product:
        product = await db.get(Product, product_id)
        if not product:
            raise NotFoundException(f"Product not found with id of {product_id}")
        return product

    async def _lock_products(self, product_ids: Iterable[int], db: AsyncSession) -> Dict[int, Product]:
        # Lock in id order so two transactions never wait on each other in a cycle
        ids = sorted(set(product_ids))
        query = (
            select(Product)
            .where(Product.id.in_(ids))
            .order_by(Product.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        products = {product.id: product for product in result.scalars().all()}

        missing = [product_id for product_id in ids if product_id not in products]
        if missing:
            raise NotFoundException(f"Product not found with id of {missing[0]}")

        return products

    @staticmethod
    def _merge_lines(lines: Iterable[Tuple[int, int]]) -> Dict[int, int]:
        quantities: Dict[int, int] = {}
        for product_id, quantity in lines:
            quantities[product_id] = quantities.get(product_id, 0) + quantity
        return quantities

    async def decrement_stock(
        self,
        lines: Iterable[Tuple[int, int]],
        order_id: int,
        db: AsyncSession
    ) -> List[InventoryTransaction]:
        """
        Take ``(product_id, quantity)`` lines out of stock for an order.

        Every line is checked before any stock is touched, so a shortfall on
        one product leaves all products unchanged.
        """
        quantities = self._merge_lines(lines)
        products = await self._lock_products(quantities, db)

        for product_id, quantity in quantities.items():
            product = products[product_id]
            if product.stock < quantity:
                raise InsufficientStockException(
                    f"Not enough stock for {product.name}. Only {product.stock} available"
                )

        transactions = []
        for product_id, quantity in quantities.items():
            transactions.append(
                self._adjust(products[product_id], -quantity, TransactionType.SALE, order_id, db)
            )

        return transactions

    async def increment_stock(
        self,
        lines: Iterable[Tuple[int, int]],
        order_id: int,
        db: AsyncSession
    ) -> List[InventoryTransaction]:
        """Return ``(product_id, quantity)`` lines to stock, e.g. when an order is cancelled."""
        quantities = self._merge_lines(lines)
        products = await self._lock_products(quantities, db)

        return [
            self._adjust(products[product_id], quantity, TransactionType.RETURN, order_id, db)
            for product_id, quantity in quantities.items()
        ]

    def _adjust(
        self,
        product: Product,
        change: int,
        transaction_type: TransactionType,
        order_id: int,
        db: AsyncSession
    ) -> InventoryTransaction:
        previous_stock = product.stock
        product.stock = previous_stock + change

        transaction = InventoryTransaction(
            product_id=product.id,
            type=transaction_type,
            quantity=abs(change),
            previous_stock=previous_stock,
            new_stock=product.stock,
            order_id=order_id,
        )
        db.add(transaction)

        logger.info(
            "Stock %s for product %s (order %s): %d -> %d",
            transaction_type.value, product.id, order_id, previous_stock, product.stock
        )
        return transaction
