"""
Catalog Service
Merchant product management, shop settings, hero images and the public storefront payload
"""

import logging
from typing import Dict, Optional

from django.conf import settings

from ..exceptions import InvalidInput, ProductNotFound, ShopNotFound
from ..models import Product, Shop
from .utils import validate_image_file

logger = logging.getLogger(__name__)

HERO_IMAGE_FIELDS = {
    'landscape': 'hero_image_landscape',
    'portrait': 'hero_image_portrait',
}

SHOP_SETTINGS_FIELDS = {
    'name': 'name',
    'whatsapp_number': 'whatsapp_number',
    'notification_chat_id': 'notification_chat_id',
    'bank_name': 'bank_name',
    'account_number': 'bank_account_number',
    'holder_name': 'bank_account_name',
    'hero_title': 'hero_title',
    'hero_tagline': 'hero_tagline',
}


def _file_url(field) -> Optional[str]:
    return field.url if field else None


def get_owner_shop(user) -> Shop:
    try:
        return Shop.objects.get(owner=user)
    except Shop.DoesNotExist:
        raise ShopNotFound('You have not set up a shop yet')


# ==========================================
# SERIALIZATION
# ==========================================

def serialize_product(product: Product) -> Dict:
    return {
        'id': product.pk,
        'name': product.name,
        'price': str(product.price),
        'description': product.description,
        'image_url': _file_url(product.image),
        'active': product.active,
        'created_at': product.created_at.isoformat(),
    }


def serialize_shop(shop: Shop, include_private: bool = False) -> Dict:
    data = {
        'id': shop.pk,
        'name': shop.name,
        'slug': shop.slug,
        'whatsapp_number': shop.whatsapp_number,
        'whatsapp_link': shop.whatsapp_link,
        'hero_title': shop.hero_title or shop.name,
        'hero_tagline': shop.hero_tagline,
        'hero_image_landscape': _file_url(shop.hero_image_landscape),
        'hero_image_portrait': _file_url(shop.hero_image_portrait),
        'bank_details': None,
    }

    if shop.has_bank_details:
        data['bank_details'] = {
            'bank_name': shop.bank_name,
            'account_number': shop.bank_account_number,
            'holder_name': shop.bank_account_name,
        }

    if include_private:
        data['notification_chat_id'] = shop.notification_chat_id
        data['bank_name'] = shop.bank_name
        data['account_number'] = shop.bank_account_number
        data['holder_name'] = shop.bank_account_name

    return data


def serialize_order(order) -> Dict:
    return {
        'order_id': str(order.order_id),
        'product_id': order.product_id,
        'product_name': order.product_name,
        'unit_price': str(order.unit_price),
        'quantity': order.quantity,
        'amount': str(order.amount),
        'customer_name': order.customer_name,
        'customer_phone': order.customer_phone,
        'address': order.address,
        'payment_proof_url': _file_url(order.payment_proof),
        'status': order.status,
        'created_at': order.created_at.isoformat(),
    }


# ==========================================
# PRODUCTS
# ==========================================

class CatalogService:
    def list_products(self, shop: Shop):
        return shop.products.all().order_by('-created_at')

    def get_product(self, shop: Shop, product_id) -> Product:
        try:
            return shop.products.get(pk=product_id)
        except (Product.DoesNotExist, ValueError, TypeError):
            raise ProductNotFound()

    def create_product(self, shop: Shop, data: Dict) -> Product:
        product = Product.objects.create(
            shop=shop,
            name=data['name'],
            price=data['price'],
            description=data.get('description', ''),
            image=data.get('image'),
            active=data.get('active', True),
        )
        logger.info(f'Product {product.pk} "{product.name}" added to {shop.slug}')
        return product

    def update_product(self, shop: Shop, product_id, data: Dict) -> Product:
        """Update a product. Existing orders keep the price they were placed at."""
        product = self.get_product(shop, product_id)

        for field in ('name', 'price', 'description', 'active'):
            if field in data and data[field] is not None:
                setattr(product, field, data[field])

        if data.get('image'):
            if product.image:
                product.image.delete(save=False)
            product.image = data['image']

        product.save()
        logger.info(f'Product {product.pk} updated in {shop.slug}')
        return product

    def delete_product(self, shop: Shop, product_id) -> None:
        product = self.get_product(shop, product_id)
        if product.image:
            product.image.delete(save=False)
        product.delete()
        logger.info(f'Product {product_id} deleted from {shop.slug}')

    # ==========================================
    # SHOP SETTINGS & HERO IMAGES
    # ==========================================

    def update_settings(self, shop: Shop, data: Dict) -> Shop:
        changed = []
        for key, field in SHOP_SETTINGS_FIELDS.items():
            if key in data and data[key] is not None and getattr(shop, field) != data[key]:
                setattr(shop, field, data[key])
                changed.append(field)

        if changed:
            shop.save(update_fields=changed + ['updated_at'])
            logger.info(f'Shop {shop.slug} settings updated: {", ".join(changed)}')

        return shop

    def replace_hero_image(self, shop: Shop, image_type: str, image=None, delete_old: bool = True) -> Shop:
        """
        Replace or remove a hero image

        Args:
            shop: Owner's shop
            image_type: 'landscape' or 'portrait'
            image: New upload. The previous file is always removed from storage.
            delete_old: With no new image, remove the current one
        """
        field_name = HERO_IMAGE_FIELDS.get(image_type)
        if not field_name:
            raise InvalidInput('Image type must be "landscape" or "portrait"')

        if image is not None:
            is_valid, error = validate_image_file(image, settings.HERO_IMAGE_MAX_SIZE)
            if not is_valid:
                raise InvalidInput(error)
        elif not delete_old:
            raise InvalidInput('Upload an image or set delete_old to remove the current one')

        current = getattr(shop, field_name)
        if current:
            current.delete(save=False)

        if image is not None:
            getattr(shop, field_name).save(image.name, image, save=False)
        else:
            setattr(shop, field_name, None)

        shop.save(update_fields=[field_name, 'updated_at'])
        logger.info(f'Hero {image_type} image {"replaced" if image is not None else "removed"} for {shop.slug}')
        return shop

    # ==========================================
    # PUBLIC STOREFRONT
    # ==========================================

    def storefront_payload(self, slug: str) -> Dict:
        try:
            shop = Shop.objects.get(slug=slug)
        except Shop.DoesNotExist:
            raise ShopNotFound()

        products = shop.products.filter(active=True).order_by('-created_at')

        payload = serialize_shop(shop)
        payload['products'] = [serialize_product(p) for p in products]
        return payload
