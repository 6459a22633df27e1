"""
Shop App Forms
Request validation for every API endpoint. Views pass JSON bodies or
multipart POST data through these before anything reaches a service.
"""

import re

from django import forms
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator

from .models import Order
from .services.utils import validate_image_file, validate_payment_proof

phone_validator = RegexValidator(
    regex=r'^\+?[\d\s\-()]{7,20}$',
    message='Enter a valid phone number'
)

account_number_validator = RegexValidator(
    regex=r'^\d{10}$',
    message='Account number must be exactly 10 digits'
)


class FieldAliasMixin:
    """
    Accept camelCase request keys (shopSlug, subscriptionId) for snake_case
    fields. When both spellings are sent the snake_case value is kept.
    """
    field_aliases = {}

    def __init__(self, data=None, *args, **kwargs):
        if data is not None and self.field_aliases:
            data = data.copy()
            for alias, name in self.field_aliases.items():
                if alias in data and name not in data:
                    data[name] = data[alias]
        super().__init__(data, *args, **kwargs)


class PartialFormMixin:
    """
    partial=True makes every field optional and provided_data() returns
    only the fields the client actually sent (for update endpoints)
    """

    def __init__(self, *args, partial=False, **kwargs):
        super().__init__(*args, **kwargs)
        self.partial = partial
        if partial:
            for field in self.fields.values():
                field.required = False

    def provided_data(self):
        if not self.partial:
            return dict(self.cleaned_data)
        sent = set(self.data.keys()) | set(self.files.keys())
        return {key: value for key, value in self.cleaned_data.items() if key in sent}


# ==========================================
# ONBOARDING & SHOP SETTINGS
# ==========================================

class OnboardingForm(forms.Form):
    business_name = forms.CharField(max_length=100)
    whatsapp_number = forms.CharField(max_length=20, validators=[phone_validator])
    notification_chat_id = forms.CharField(max_length=64, required=False)
    bank_name = forms.CharField(max_length=100, required=False)
    account_number = forms.CharField(max_length=10, required=False, validators=[account_number_validator])
    holder_name = forms.CharField(max_length=100, required=False)

    def clean_business_name(self):
        name = self.cleaned_data.get('business_name', '').strip()
        if not name:
            raise ValidationError('Business name is required.')
        return name

    def clean_whatsapp_number(self):
        return re.sub(r'[\s\-()]', '', self.cleaned_data.get('whatsapp_number', ''))


class ShopSettingsForm(PartialFormMixin, forms.Form):
    name = forms.CharField(max_length=100)
    whatsapp_number = forms.CharField(max_length=20, validators=[phone_validator])
    notification_chat_id = forms.CharField(max_length=64, required=False)
    bank_name = forms.CharField(max_length=100, required=False)
    account_number = forms.CharField(max_length=10, required=False, validators=[account_number_validator])
    holder_name = forms.CharField(max_length=100, required=False)
    hero_title = forms.CharField(max_length=120, required=False)
    hero_tagline = forms.CharField(max_length=200, required=False)

    def clean_name(self):
        name = (self.cleaned_data.get('name') or '').strip()
        if 'name' in self.data and not name:
            raise ValidationError('Shop name cannot be empty.')
        return name

    def clean_whatsapp_number(self):
        number = re.sub(r'[\s\-()]', '', self.cleaned_data.get('whatsapp_number') or '')
        if 'whatsapp_number' in self.data and not number:
            raise ValidationError('WhatsApp number cannot be empty.')
        return number


class HeroImageForm(forms.Form):
    IMAGE_TYPE_CHOICES = [
        ('landscape', 'Landscape'),
        ('portrait', 'Portrait'),
    ]

    image_type = forms.ChoiceField(choices=IMAGE_TYPE_CHOICES)
    image = forms.FileField(required=False)
    delete_old = forms.BooleanField(required=False)


# ==========================================
# PRODUCTS
# ==========================================

class ProductForm(PartialFormMixin, forms.Form):
    name = forms.CharField(max_length=200)
    price = forms.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    description = forms.CharField(required=False)
    image = forms.FileField(required=False)
    active = forms.BooleanField(required=False)

    def clean_name(self):
        name = (self.cleaned_data.get('name') or '').strip()
        if 'name' in self.data and not name:
            raise ValidationError('Product name cannot be empty.')
        return name

    def clean_image(self):
        image = self.cleaned_data.get('image')
        if image:
            is_valid, error = validate_image_file(image, settings.PRODUCT_IMAGE_MAX_SIZE)
            if not is_valid:
                raise ValidationError(error)
        return image

    def clean_active(self):
        # New products are listed unless the merchant says otherwise
        if 'active' not in self.data and not self.partial:
            return True
        return self.cleaned_data.get('active')


# ==========================================
# ORDERS
# ==========================================

class OrderSubmissionForm(FieldAliasMixin, forms.Form):
    field_aliases = {
        'shopSlug': 'shop_slug',
        'productId': 'product_id',
        'customerName': 'customer_name',
        'customerPhone': 'customer_phone',
    }

    shop_slug = forms.SlugField(max_length=60)
    product_id = forms.IntegerField(min_value=1)
    quantity = forms.IntegerField(min_value=1, required=False)
    customer_name = forms.CharField(max_length=120)
    customer_phone = forms.CharField(max_length=20, validators=[phone_validator])
    address = forms.CharField()
    payment_proof = forms.FileField()

    def clean_quantity(self):
        return self.cleaned_data.get('quantity') or 1

    def clean_customer_name(self):
        name = self.cleaned_data.get('customer_name', '').strip()
        if not name:
            raise ValidationError('Your name is required.')
        return name

    def clean_address(self):
        address = self.cleaned_data.get('address', '').strip()
        if not address:
            raise ValidationError('Delivery address is required.')
        return address

    def clean_payment_proof(self):
        proof = self.cleaned_data.get('payment_proof')
        if proof:
            is_valid, error = validate_payment_proof(proof, settings.PAYMENT_PROOF_MAX_SIZE)
            if not is_valid:
                raise ValidationError(error)
        return proof


class OrderListForm(FieldAliasMixin, forms.Form):
    field_aliases = {'shopSlug': 'shop_slug'}

    shop_slug = forms.SlugField(max_length=60, required=False)
    status = forms.ChoiceField(choices=[('', 'All')] + Order.STATUS_CHOICES, required=False)


class OrderStatusForm(forms.Form):
    STATUS_CHOICES = [
        (Order.STATUS_COMPLETED, 'Completed'),
        (Order.STATUS_FAILED, 'Failed'),
    ]

    status = forms.ChoiceField(choices=STATUS_CHOICES)


# ==========================================
# SUBSCRIPTION & PAYMENT
# ==========================================

class SubscriptionCheckForm(FieldAliasMixin, forms.Form):
    field_aliases = {'userId': 'user_id'}

    user_id = forms.IntegerField(required=False)


class PaymentVerifyForm(FieldAliasMixin, forms.Form):
    field_aliases = {'subscriptionId': 'subscription_id'}

    # Presence is checked by PaymentFlowController.verify
    reference = forms.CharField(max_length=100, required=False)
    subscription_id = forms.IntegerField(required=False)

    def clean_reference(self):
        reference = (self.cleaned_data.get('reference') or '').strip()
        if reference and not re.match(r'^[A-Za-z0-9_\-.=]+$', reference):
            raise ValidationError('Invalid payment reference.')
        return reference


class TestNotificationForm(forms.Form):
    contact_id = forms.CharField(max_length=64)
    shop_name = forms.CharField(max_length=100, required=False)
