"""
Shop App Views
JSON API for subscription, payment, onboarding, catalog, orders and the public storefront
"""

import logging

from django.conf import settings
from django.http import JsonResponse
from django.shortcuts import redirect
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET

from core.utils.json_api import form_error_message, read_payload

from .decorators import (
    api_login_required, api_view, check_subscription, shop_required, subscription_required
)
from .exceptions import Forbidden, GatewayError, InvalidInput, NotFound, ShopError, ShopNotFound
from .forms import (
    HeroImageForm, OnboardingForm, OrderListForm, OrderStatusForm,
    OrderSubmissionForm, PaymentVerifyForm, ProductForm, ShopSettingsForm,
    SubscriptionCheckForm, TestNotificationForm
)
from .models import Shop
from .services.catalog import (
    CatalogService, serialize_order, serialize_product, serialize_shop
)
from .services.notifications import NotificationService
from .services.onboarding import OnboardingService
from .services.orders import CustomerInfo, OrderService
from .services.subscriptions import PaymentFlowController, SubscriptionGate

logger = logging.getLogger(__name__)


def _bound_form(form_class, request, **kwargs):
    """Bind a form to the JSON or form-encoded body plus uploaded files"""
    try:
        data = read_payload(request)
    except ValueError as e:
        raise InvalidInput(str(e))

    form = form_class(data, request.FILES or None, **kwargs)
    if not form.is_valid():
        raise InvalidInput(form_error_message(form))
    return form


# ==========================================
# SUBSCRIPTION & PAYMENT
# ==========================================

@api_view(['POST'])
@api_login_required
def subscription_check(request):
    """
    Gate result for the logged-in account.
    Staff may check another account by passing user_id.
    """
    form = _bound_form(SubscriptionCheckForm, request)
    user_id = form.cleaned_data.get('user_id') or request.user.pk

    if user_id != request.user.pk and not request.user.is_staff:
        raise Forbidden('You can only check your own subscription')

    result = SubscriptionGate().is_active(user_id)
    return JsonResponse(result.to_dict())


@api_view(['POST'])
@api_login_required
def payment_initialize(request):
    result = PaymentFlowController().initialize(request.user.email, request.user.pk)
    return JsonResponse(result.to_dict())


@csrf_exempt
@api_view(['POST'])
def payment_verify(request):
    """
    Verify a Paystack reference. Declined payments answer 400 with
    status "failed" so the client can offer a retry.
    """
    form = _bound_form(PaymentVerifyForm, request)

    result = PaymentFlowController().verify(
        form.cleaned_data['reference'],
        form.cleaned_data.get('subscription_id')
    )

    if not result.verified:
        return JsonResponse({'error': 'Payment was not successful', 'status': 'failed'}, status=400)

    subscription = result.subscription
    return JsonResponse({
        'status': 'success',
        'message': 'Payment verified successfully',
        'subscription': {
            'id': subscription.pk,
            'status': subscription.status,
            'paid_at': subscription.paid_at.isoformat(),
            'expires_at': subscription.expires_at.isoformat(),
        },
        'payment_details': {
            'reference': result.record.external_reference,
            'amount': str(result.record.amount),
            'paid_at': subscription.paid_at.isoformat(),
            'expires_at': subscription.expires_at.isoformat(),
        },
    })


@require_GET
def payment_callback(request):
    """
    Paystack redirects the customer here after checkout
    """
    reference = request.GET.get('reference') or request.GET.get('trxref')

    try:
        result = PaymentFlowController().verify(reference)
    except GatewayError as e:
        logger.error(f'Payment callback could not reach Paystack for {reference}: {e.message}')
        return redirect(f'{settings.PAYMENT_FAILURE_URL}?reference={reference or ""}&error=gateway')
    except ShopError as e:
        logger.warning(f'Payment callback failed for {reference}: {e.message}')
        return redirect(f'{settings.PAYMENT_FAILURE_URL}?reference={reference or ""}')

    if result.verified:
        return redirect(settings.PAYMENT_SUCCESS_URL)
    return redirect(f'{settings.PAYMENT_FAILURE_URL}?reference={reference}&status=failed')


# ==========================================
# ONBOARDING & SHOP SETTINGS
# ==========================================

@api_view(['POST'])
@subscription_required
def onboarding(request):
    form = _bound_form(OnboardingForm, request)
    shop = OnboardingService().create_shop(request.user, form.cleaned_data)

    return JsonResponse({
        'success': True,
        'shop': serialize_shop(shop, include_private=True),
    }, status=201)


@api_view(['GET', 'POST'])
@subscription_required
@shop_required
def shop_settings(request):
    if request.method == 'POST':
        form = _bound_form(ShopSettingsForm, request, partial=True)
        CatalogService().update_settings(request.shop, form.provided_data())

    return JsonResponse({'shop': serialize_shop(request.shop, include_private=True)})


@api_view(['POST'])
@subscription_required
@shop_required
def hero_image_update(request):
    form = _bound_form(HeroImageForm, request)

    shop = CatalogService().replace_hero_image(
        request.shop,
        form.cleaned_data['image_type'],
        image=form.cleaned_data.get('image'),
        delete_old=form.cleaned_data.get('delete_old', False),
    )

    return JsonResponse({'success': True, 'shop': serialize_shop(shop, include_private=True)})


# ==========================================
# PRODUCTS
# ==========================================

@api_view(['GET', 'POST'])
@subscription_required
@shop_required
def products(request):
    catalog = CatalogService()

    if request.method == 'POST':
        form = _bound_form(ProductForm, request)
        product = catalog.create_product(request.shop, form.provided_data())
        return JsonResponse({'product': serialize_product(product)}, status=201)

    return JsonResponse({
        'products': [serialize_product(p) for p in catalog.list_products(request.shop)]
    })


@api_view(['POST'])
@subscription_required
@shop_required
def product_update(request, product_id):
    form = _bound_form(ProductForm, request, partial=True)
    product = CatalogService().update_product(request.shop, product_id, form.provided_data())
    return JsonResponse({'product': serialize_product(product)})


@api_view(['POST'])
@subscription_required
@shop_required
def product_delete(request, product_id):
    CatalogService().delete_product(request.shop, product_id)
    return JsonResponse({'success': True})


# ==========================================
# ORDERS
# ==========================================

@csrf_exempt
@api_view(['GET', 'POST'])
def orders(request):
    """
    GET: merchant lists their shop's orders (?shopSlug=&status=), subscription required
    POST: customer submits a bank transfer order (multipart, public)
    """
    if request.method == 'POST':
        return _submit_order(request)

    if not request.user.is_authenticated:
        return JsonResponse({'error': 'Authentication required'}, status=401)

    denied = check_subscription(request)
    if denied is not None:
        return denied

    form = OrderListForm(request.GET)
    if not form.is_valid():
        raise InvalidInput(form_error_message(form))

    shop_slug = form.cleaned_data.get('shop_slug')
    try:
        shop = Shop.objects.get(slug=shop_slug) if shop_slug else Shop.objects.get(owner=request.user)
    except Shop.DoesNotExist:
        raise ShopNotFound()

    if shop.owner_id != request.user.pk:
        raise Forbidden('You can only view orders for your own shop')

    order_list = OrderService().list_for_shop(shop, form.cleaned_data.get('status') or None)
    return JsonResponse({'orders': [serialize_order(o) for o in order_list]})


def _submit_order(request):
    form = _bound_form(OrderSubmissionForm, request)
    data = form.cleaned_data

    submission = OrderService().submit(
        shop_slug=data['shop_slug'],
        customer=CustomerInfo(
            name=data['customer_name'],
            phone=data['customer_phone'],
            address=data['address'],
        ),
        product_id=data['product_id'],
        quantity=data['quantity'],
        proof_file=data['payment_proof'],
    )

    return JsonResponse({
        'success': True,
        'order': serialize_order(submission.order),
        'notified': submission.notified,
    }, status=201)


@api_view(['POST'])
@subscription_required
def order_status_update(request, order_id):
    form = _bound_form(OrderStatusForm, request)
    order = OrderService().transition(order_id, request.user, form.cleaned_data['status'])
    return JsonResponse({'success': True, 'order': serialize_order(order)})


@api_view(['GET'])
@subscription_required
@shop_required
def sales_summary(request):
    summary = OrderService().sales_summary(request.shop)
    summary['total_revenue'] = str(summary['total_revenue'])
    return JsonResponse(summary)


# ==========================================
# PUBLIC STOREFRONT
# ==========================================

@api_view(['GET'])
def storefront(request, slug):
    return JsonResponse(CatalogService().storefront_payload(slug))


# ==========================================
# NOTIFIER CHECK (DEBUG ONLY)
# ==========================================

@csrf_exempt
@api_view(['POST'])
def notification_test(request):
    if not settings.DEBUG:
        raise NotFound()

    form = _bound_form(TestNotificationForm, request)
    result = NotificationService().send_test(
        form.cleaned_data['contact_id'],
        form.cleaned_data.get('shop_name') or 'Test Shop'
    )

    return JsonResponse(result.to_dict(), status=200 if result.success else 500)
