"""
Shop App Models
Shops, products, customer orders, subscriptions and the payment audit trail
"""

import os
import re
import secrets
import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from .services.utils import normalize_phone


# ==========================================
# STORAGE PATHS
# ==========================================

def _timestamp_ms() -> int:
    return int(timezone.now().timestamp() * 1000)


def _random_name(filename: str, folder: str) -> str:
    ext = os.path.splitext(filename)[1].lower().lstrip('.') or 'bin'
    return f'{folder}/{_timestamp_ms()}-{secrets.token_hex(6)}.{ext}'


def _hero_image_path(instance, filename, image_type):
    original = re.sub(r'[^A-Za-z0-9._-]+', '-', os.path.basename(filename)).strip('-') or 'image'
    return f'hero-images/{instance.pk}-{image_type}-{_timestamp_ms()}-{original}'


def hero_landscape_path(instance, filename):
    return _hero_image_path(instance, filename, 'landscape')


def hero_portrait_path(instance, filename):
    return _hero_image_path(instance, filename, 'portrait')


def payment_proof_path(instance, filename):
    return _random_name(filename, 'payment-proofs')


def product_image_path(instance, filename):
    return _random_name(filename, 'products')


# ==========================================
# SHOP & CATALOG
# ==========================================

class Shop(models.Model):
    """
    Merchant storefront - one per account
    Reached publicly at /api/storefront/<slug>/
    """
    owner = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='shop'
    )

    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=60, unique=True)

    # Contact
    whatsapp_number = models.CharField(max_length=20)
    notification_chat_id = models.CharField(
        max_length=64,
        blank=True,
        help_text="Chat id (Telegram) or phone (SMS) for new order alerts. Falls back to WhatsApp number."
    )

    # Bank transfer details shown to customers
    bank_name = models.CharField(max_length=100, blank=True)
    bank_account_number = models.CharField(max_length=20, blank=True)
    bank_account_name = models.CharField(max_length=100, blank=True)

    # Hero section
    hero_title = models.CharField(max_length=120, blank=True)
    hero_tagline = models.CharField(max_length=200, blank=True)
    hero_image_landscape = models.ImageField(upload_to=hero_landscape_path, blank=True, null=True)
    hero_image_portrait = models.ImageField(upload_to=hero_portrait_path, blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Shop"
        verbose_name_plural = "Shops"
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    @property
    def notification_contact(self):
        return self.notification_chat_id or self.whatsapp_number

    @property
    def whatsapp_link(self):
        digits = normalize_phone(self.whatsapp_number)
        return f'https://wa.me/{digits}' if digits else ''

    @property
    def has_bank_details(self):
        return all([self.bank_name, self.bank_account_number, self.bank_account_name])


class Product(models.Model):
    shop = models.ForeignKey(Shop, on_delete=models.CASCADE, related_name='products')

    name = models.CharField(max_length=200)
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))]
    )
    description = models.TextField(blank=True)
    image = models.ImageField(upload_to=product_image_path, blank=True, null=True)
    active = models.BooleanField(default=True, help_text="Inactive products are hidden from the storefront")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Product"
        verbose_name_plural = "Products"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['shop', 'active'], name='shops_produ_shop_id_3c1f2a_idx'),
        ]

    def __str__(self):
        return self.name


# ==========================================
# ORDERS
# ==========================================

class Order(models.Model):
    """
    Manual bank-transfer order placed from the storefront.
    Product name and unit price are captured at submission; amount is never recomputed.
    """

    STATUS_PENDING = 'pending'
    STATUS_COMPLETED = 'completed'
    STATUS_FAILED = 'failed'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_FAILED, 'Failed'),
    ]

    order_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    shop = models.ForeignKey(Shop, on_delete=models.CASCADE, related_name='orders')
    product = models.ForeignKey(
        Product,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders'
    )

    # Priced line item snapshot
    product_name = models.CharField(max_length=200)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    amount = models.DecimalField(max_digits=14, decimal_places=2)

    # Customer
    customer_name = models.CharField(max_length=120)
    customer_phone = models.CharField(max_length=20)
    address = models.TextField()
    payment_proof = models.FileField(upload_to=payment_proof_path)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Order"
        verbose_name_plural = "Orders"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['shop', 'status'], name='shops_order_shop_id_8d2e4b_idx'),
        ]

    def __str__(self):
        return f"Order #{str(self.order_id)[:8]} - {self.status}"

    @property
    def short_id(self):
        return str(self.order_id)[:8]


# ==========================================
# SUBSCRIPTIONS & PAYMENTS
# ==========================================

class Subscription(models.Model):
    """
    Annual access entitlement for one account.
    none -> pending -> active; active only after Paystack verification (or admin bootstrap).
    """

    STATUS_PENDING = 'pending'
    STATUS_ACTIVE = 'active'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACTIVE, 'Active'),
    ]

    owner = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='subscription'
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    plan_amount = models.DecimalField(max_digits=12, decimal_places=2)

    payment_reference = models.CharField(max_length=100, blank=True, db_index=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    renewal_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Subscription"
        verbose_name_plural = "Subscriptions"
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.owner} - {self.status}"

    def is_current(self, now=None):
        if self.status != self.STATUS_ACTIVE:
            return False
        if self.expires_at is None:
            return True
        return self.expires_at > (now or timezone.now())


class PaymentRecord(models.Model):
    """
    Append-only audit row, one per verification attempt.
    At most one success row per Paystack reference.
    """

    STATUS_SUCCESS = 'success'
    STATUS_FAILED = 'failed'

    STATUS_CHOICES = [
        (STATUS_SUCCESS, 'Success'),
        (STATUS_FAILED, 'Failed'),
    ]

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payment_records'
    )
    subscription = models.ForeignKey(
        Subscription,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payment_records'
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    external_reference = models.CharField(max_length=100, db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES)
    method = models.CharField(max_length=20, default='paystack')
    raw_metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Payment Record"
        verbose_name_plural = "Payment Records"
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['external_reference'],
                condition=Q(status='success'),
                name='unique_success_per_reference',
            ),
        ]

    def __str__(self):
        return f"{self.external_reference} - {self.status} - ₦{self.amount}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError('Payment records are append-only and cannot be modified')
        super().save(*args, **kwargs)
