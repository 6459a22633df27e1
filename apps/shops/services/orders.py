"""
Order Service
Customer order submission from the storefront and merchant approve/reject.

Order status: pending -> completed | failed. Completed and failed are final.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional

from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from ..exceptions import (
    Forbidden,
    InvalidInput,
    InvalidTransition,
    OrderNotFound,
    ProductNotFound,
    ShopNotFound,
)
from ..models import Order, Product, Shop
from .notifications import NotificationResult, NotificationService, OrderSummary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PricedLineItem:
    """Product name and price as they were when the customer ordered"""
    product_id: Optional[int]
    product_name: str
    unit_price: Decimal
    quantity: int

    @classmethod
    def capture(cls, product: Product, quantity: int) -> 'PricedLineItem':
        if quantity < 1:
            raise InvalidInput('Quantity must be at least 1')
        return cls(
            product_id=product.pk,
            product_name=product.name,
            unit_price=product.price,
            quantity=quantity,
        )

    @property
    def amount(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class CustomerInfo:
    name: str
    phone: str
    address: str


@dataclass
class OrderSubmission:
    order: Order
    notified: bool
    notification: NotificationResult


class OrderService:
    TARGET_STATUSES = (Order.STATUS_COMPLETED, Order.STATUS_FAILED)

    def __init__(self, notifier: Optional[NotificationService] = None):
        self.notifier = notifier or NotificationService()

    # ==========================================
    # SUBMIT (PUBLIC)
    # ==========================================

    def submit(self, shop_slug: str, customer: CustomerInfo, product_id, quantity: int, proof_file) -> OrderSubmission:
        """
        Record a customer's bank transfer order

        Args:
            shop_slug: Storefront slug
            customer: Name, phone and delivery address
            product_id: Product being ordered (must be active and in this shop)
            quantity: Number of units
            proof_file: Uploaded payment proof

        Returns:
            OrderSubmission. The merchant notification is best-effort and
            reported through `notified`, never as an error.

        Raises:
            ShopNotFound / ProductNotFound / InvalidInput
        """
        try:
            shop = Shop.objects.get(slug=shop_slug)
        except Shop.DoesNotExist:
            raise ShopNotFound()

        try:
            product = shop.products.get(pk=product_id, active=True)
        except (Product.DoesNotExist, ValueError, TypeError):
            raise ProductNotFound()

        line = PricedLineItem.capture(product, quantity)

        with transaction.atomic():
            order = Order.objects.create(
                shop=shop,
                product=product,
                product_name=line.product_name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                amount=line.amount,
                customer_name=customer.name,
                customer_phone=customer.phone,
                address=customer.address,
                payment_proof=proof_file,
                status=Order.STATUS_PENDING,
            )

        logger.info(f'Order #{order.short_id} placed at {shop.slug}: {line.quantity} x {line.product_name} = ₦{line.amount}')

        notification = self.notifier.notify(shop.notification_contact, OrderSummary.from_order(order))

        return OrderSubmission(
            order=order,
            notified=notification.success and not notification.skipped,
            notification=notification,
        )

    # ==========================================
    # MERCHANT ACTIONS
    # ==========================================

    def transition(self, order_id, requester, target_status: str) -> Order:
        """
        Approve (completed) or reject (failed) a pending order

        Raises:
            InvalidInput: target_status is not completed/failed
            OrderNotFound: Unknown order id
            Forbidden: requester does not own the order's shop
            InvalidTransition: Order is no longer pending
        """
        if target_status not in self.TARGET_STATUSES:
            raise InvalidInput('Status must be "completed" or "failed"')

        try:
            order = Order.objects.select_related('shop').get(order_id=order_id)
        except (Order.DoesNotExist, ValueError, TypeError):
            raise OrderNotFound()

        if order.shop.owner_id != getattr(requester, 'pk', None):
            logger.warning(f'User {getattr(requester, "pk", None)} tried to change order #{order.short_id} of another shop')
            raise Forbidden('You can only update orders for your own shop')

        # Conditional update: concurrent approve/reject cannot both win
        updated = Order.objects.filter(pk=order.pk, status=Order.STATUS_PENDING).update(
            status=target_status,
            updated_at=timezone.now(),
        )

        order.refresh_from_db()

        if not updated:
            raise InvalidTransition(f'Order is already {order.status}')

        logger.info(f'Order #{order.short_id} marked {target_status} by {requester.email}')
        return order

    def list_for_shop(self, shop: Shop, status: Optional[str] = None):
        orders = shop.orders.select_related('product')
        if status:
            if status not in dict(Order.STATUS_CHOICES):
                raise InvalidInput(f'Unknown order status "{status}"')
            orders = orders.filter(status=status)
        return orders.order_by('-created_at')

    def sales_summary(self, shop: Shop) -> Dict:
        """Revenue from completed orders plus counts per status"""
        stats = shop.orders.aggregate(
            total_revenue=Sum('amount', filter=Q(status=Order.STATUS_COMPLETED)),
            completed=Count('id', filter=Q(status=Order.STATUS_COMPLETED)),
            pending=Count('id', filter=Q(status=Order.STATUS_PENDING)),
            failed=Count('id', filter=Q(status=Order.STATUS_FAILED)),
            total_orders=Count('id'),
        )
        stats['total_revenue'] = stats['total_revenue'] or Decimal('0.00')
        return stats
