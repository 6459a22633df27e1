"""
Shop App URLs
"""

from django.urls import path

from . import views

app_name = 'shops'

urlpatterns = [
    # Subscription & payment
    path('subscription/check/', views.subscription_check, name='subscription_check'),
    path('payment/initialize/', views.payment_initialize, name='payment_initialize'),
    path('payment/verify/', views.payment_verify, name='payment_verify'),

    # Onboarding & settings
    path('onboarding/', views.onboarding, name='onboarding'),
    path('shop/', views.shop_settings, name='shop_settings'),
    path('shop/hero-images/', views.hero_image_update, name='hero_image_update'),

    # Products
    path('products/', views.products, name='products'),
    path('products/<int:product_id>/', views.product_update, name='product_update'),
    path('products/<int:product_id>/delete/', views.product_delete, name='product_delete'),

    # Orders
    path('orders/', views.orders, name='orders'),
    path('orders/<uuid:order_id>/status/', views.order_status_update, name='order_status_update'),
    path('sales/summary/', views.sales_summary, name='sales_summary'),

    # Public
    path('storefront/<slug:slug>/', views.storefront, name='storefront'),

    path('notifications/test/', views.notification_test, name='notification_test'),
]
