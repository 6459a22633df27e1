"""
Shop App Django Admin
Provides admin interface for shops, products, orders, subscriptions and payment records
"""

from django.contrib import admin
from django.utils.html import format_html

from .models import Shop, Product, Order, Subscription, PaymentRecord


def _badge(color, label):
    return format_html(
        '<span style="background-color: {}; color: white; padding: 3px 10px; border-radius: 3px;">{}</span>',
        color, label
    )


# ==========================================
# INLINE ADMIN CLASSES
# ==========================================

class ProductInline(admin.TabularInline):
    """Show products inside Shop admin"""
    model = Product
    extra = 0
    fields = ['name', 'price', 'active']


# ==========================================
# SHOP & PRODUCT ADMIN
# ==========================================

@admin.register(Shop)
class ShopAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'owner', 'whatsapp_number', 'bank_badge', 'product_count', 'created_at']
    search_fields = ['name', 'slug', 'owner__email']
    readonly_fields = ['created_at', 'updated_at', 'hero_preview']
    inlines = [ProductInline]

    fieldsets = (
        ('Shop', {'fields': ('owner', 'name', 'slug')}),
        ('Contact', {'fields': ('whatsapp_number', 'notification_chat_id')}),
        ('Bank Details', {'fields': ('bank_name', 'bank_account_number', 'bank_account_name')}),
        ('Hero', {'fields': ('hero_title', 'hero_tagline', 'hero_image_landscape', 'hero_image_portrait', 'hero_preview')}),
        ('Timestamps', {'fields': ('created_at', 'updated_at'), 'classes': ('collapse',)}),
    )

    def bank_badge(self, obj):
        if obj.has_bank_details:
            return format_html('<span style="color: green;">✓ Bank</span>')
        return format_html('<span style="color: orange;">⏳ Bank</span>')
    bank_badge.short_description = 'Bank Details'

    def product_count(self, obj):
        return obj.products.count()
    product_count.short_description = 'Products'

    def hero_preview(self, obj):
        if obj.hero_image_landscape:
            return format_html('<img src="{}" width="240" style="object-fit: cover;" />', obj.hero_image_landscape.url)
        return '-'
    hero_preview.short_description = 'Hero Preview'


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'shop', 'price', 'active', 'created_at']
    list_filter = ['active']
    search_fields = ['name', 'shop__name', 'shop__slug']
    list_editable = ['active']


# ==========================================
# ORDER ADMIN
# ==========================================

@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_id_short', 'shop', 'product_name', 'quantity', 'amount', 'customer_name', 'status_badge', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['order_id', 'customer_name', 'customer_phone', 'shop__slug']
    date_hierarchy = 'created_at'
    readonly_fields = [
        'order_id', 'shop', 'product', 'product_name', 'unit_price', 'quantity', 'amount',
        'customer_name', 'customer_phone', 'address', 'payment_proof', 'created_at', 'updated_at'
    ]

    def order_id_short(self, obj):
        return f'#{obj.short_id}'
    order_id_short.short_description = 'Order'

    def status_badge(self, obj):
        colors = {
            'pending': 'orange',
            'completed': 'green',
            'failed': 'red',
        }
        return _badge(colors.get(obj.status, 'gray'), obj.get_status_display())
    status_badge.short_description = 'Status'


# ==========================================
# SUBSCRIPTION & PAYMENT ADMIN
# ==========================================

@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ['owner', 'status_badge', 'plan_amount', 'payment_reference', 'paid_at', 'expires_at']
    list_filter = ['status', 'expires_at']
    search_fields = ['owner__email', 'payment_reference']
    readonly_fields = ['created_at', 'updated_at']

    def status_badge(self, obj):
        if obj.is_current():
            return _badge('green', 'Active')
        if obj.status == Subscription.STATUS_ACTIVE:
            return _badge('gray', 'Expired')
        return _badge('orange', obj.get_status_display())
    status_badge.short_description = 'Status'


@admin.register(PaymentRecord)
class PaymentRecordAdmin(admin.ModelAdmin):
    """Audit trail - read only"""
    list_display = ['external_reference', 'owner', 'subscription', 'amount', 'status_badge', 'method', 'created_at']
    list_filter = ['status', 'method']
    search_fields = ['external_reference', 'owner__email']
    readonly_fields = [
        'owner', 'subscription', 'amount', 'external_reference',
        'status', 'method', 'raw_metadata', 'created_at'
    ]

    def status_badge(self, obj):
        color = 'green' if obj.status == PaymentRecord.STATUS_SUCCESS else 'red'
        return _badge(color, obj.get_status_display())
    status_badge.short_description = 'Status'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
