"""
Shop App Decorators
Access control and error mapping for JSON API views
"""

import logging
from functools import wraps

from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from .exceptions import GatewayError, ShopError
from .services.catalog import get_owner_shop
from .services.subscriptions import SubscriptionGate

logger = logging.getLogger(__name__)

PAYMENT_REDIRECT = '/api/payment/initialize/'


def error_response(message, status, **extra):
    return JsonResponse({'error': message, **extra}, status=status)


# ==========================================
# ERROR HANDLING
# ==========================================

def api_view(methods):
    """
    Restrict HTTP methods and turn service errors into JSON responses

    - ShopError subclasses -> {"error": message} with their status code
    - Payment gateway errors are logged and shown as a generic retry message
    - Anything else is logged with traceback and returned as 500

    Usage:
        @api_view(['POST'])
        @api_login_required
        def create_shop(request):
            ...
    """
    def decorator(view_func):
        @require_http_methods(methods)
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            try:
                return view_func(request, *args, **kwargs)
            except GatewayError as e:
                logger.error(f'Payment gateway error on {request.path}: {e.message} {e.context or ""}')
                return error_response('Payment service is unavailable. Please try again.', e.status_code)
            except ShopError as e:
                return error_response(e.message, e.status_code)
            except Exception:
                logger.exception(f'Unhandled error on {request.method} {request.path}')
                return error_response('Internal server error', 500)

        return wrapper

    return decorator


# ==========================================
# ACCESS DECORATORS
# ==========================================

def check_subscription(request):
    """
    Run the subscription gate for a logged-in request.
    Returns the 402 response when access is denied, otherwise None
    and sets request.subscription_status.
    """
    result = SubscriptionGate().check(request.user)

    if not result.active:
        return error_response(
            'An active subscription is required',
            402,
            redirect=PAYMENT_REDIRECT
        )

    request.subscription_status = result
    return None


def api_login_required(view_func):
    """
    JSON version of login_required: 401 instead of a redirect
    """
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return error_response('Authentication required', 401)

        return view_func(request, *args, **kwargs)

    return wrapper


def subscription_required(view_func):
    """
    Require a current subscription (or an admin account)
    Fail-closed: any gate error counts as no subscription. Implies login.
    """
    @wraps(view_func)
    @api_login_required
    def wrapper(request, *args, **kwargs):
        denied = check_subscription(request)
        if denied is not None:
            return denied

        return view_func(request, *args, **kwargs)

    return wrapper


def shop_required(view_func):
    """
    Attach the current user's shop as request.shop (404 if not onboarded yet)
    Use after subscription_required.
    """
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        request.shop = get_owner_shop(request.user)
        return view_func(request, *args, **kwargs)

    return wrapper
