"""
Main URL configuration for ShopZa project.
"""
from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

from apps.shops import views as shop_views

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include(('apps.shops.urls', 'shops'), namespace='shops')),

    # Paystack redirects here after checkout
    path('payment/callback/', shop_views.payment_callback, name='payment_callback'),

    path('accounts/', include('allauth.urls')),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)
