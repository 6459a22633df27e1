"""
Shop App Exceptions
Every error a service can raise towards a view. The api_view decorator
turns these into JSON responses using status_code and message.
"""


class ShopError(Exception):
    """Base class for all shop errors"""
    status_code = 500
    default_message = 'Something went wrong'

    def __init__(self, message=None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)


# ==========================================
# 400 - BAD REQUEST
# ==========================================

class InvalidInput(ShopError):
    """Missing or malformed request field"""
    status_code = 400
    default_message = 'Invalid input'


class InvalidTransition(ShopError):
    """Order status change not allowed from its current status"""
    status_code = 400
    default_message = 'This status change is not allowed'


# ==========================================
# 403 / 404
# ==========================================

class Forbidden(ShopError):
    status_code = 403
    default_message = 'You do not have permission to perform this action'


class NotFound(ShopError):
    status_code = 404
    default_message = 'Not found'


class AccountNotFound(NotFound):
    default_message = 'Account not found'


class ShopNotFound(NotFound):
    default_message = 'Shop not found'


class ProductNotFound(NotFound):
    default_message = 'Product not found'


class OrderNotFound(NotFound):
    default_message = 'Order not found'


class SubscriptionNotFound(NotFound):
    default_message = 'Subscription not found'


# ==========================================
# 409 - CONFLICT
# ==========================================

class Conflict(ShopError):
    status_code = 409
    default_message = 'Conflict'


class AlreadyOnboarded(Conflict):
    default_message = 'You already have a shop'


class SlugAllocationExhausted(Conflict):
    default_message = 'Could not generate a unique shop link. Please try a different business name.'


# ==========================================
# THIRD-PARTY FAILURES
# ==========================================

class GatewayError(ShopError):
    """Paystack call failed, timed out, or reported status=false"""
    status_code = 500
    default_message = 'Payment gateway error'


class MalformedGatewayResponse(GatewayError):
    """Paystack reported success but the payload is missing required fields"""
    default_message = 'Payment gateway returned an incomplete response'


class NotifierError(ShopError):
    """Messaging transport failed. Never leaves NotificationService.notify"""
    status_code = 500
    default_message = 'Notification failed'
