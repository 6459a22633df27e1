"""
Onboarding Service
Creates a merchant's shop and gives it a unique public slug.
"""

import logging
import re
from typing import Dict, Iterable, Optional

from django.db import IntegrityError, transaction

from ..config import ShopConfig
from ..exceptions import AlreadyOnboarded, SlugAllocationExhausted
from ..models import Shop

logger = logging.getLogger(__name__)

SLUG_BASE_MAX_LENGTH = 50
SLUG_FALLBACK = 'shop'


def normalize_slug(name: str) -> str:
    """
    Turn a business name into a URL-safe token

    Examples:
        "Amaka's Footwear" -> "amakas-footwear"
        "  Tola & Sons!! " -> "tola-sons"
        "!!!" -> "shop"
    """
    slug = (name or '').lower()
    slug = re.sub(r"['’]", '', slug)
    slug = re.sub(r'[^a-z0-9]+', '-', slug).strip('-')
    slug = slug[:SLUG_BASE_MAX_LENGTH].strip('-')
    return slug or SLUG_FALLBACK


class SlugAllocator:
    """
    Finds an unused slug: base, base-2, base-3, ...
    Bounded by max_attempts so the loop always ends.
    """

    def __init__(self, max_attempts: int = 50):
        self.max_attempts = max_attempts

    def candidates(self, base: str):
        yield base
        for counter in range(2, self.max_attempts + 1):
            yield f'{base}-{counter}'

    def allocate(self, name: str, skip: Iterable[str] = ()) -> str:
        """
        Args:
            name: Business name
            skip: Slugs to treat as taken (e.g. one that just lost an insert race)

        Raises:
            SlugAllocationExhausted: Every candidate is taken
        """
        base = normalize_slug(name)
        skip = set(skip)

        candidates = list(self.candidates(base))
        taken = set(Shop.objects.filter(slug__in=candidates).values_list('slug', flat=True)) | skip

        for candidate in candidates:
            if candidate not in taken:
                return candidate

        logger.error(f'Slug allocation exhausted for "{name}" after {self.max_attempts} attempts')
        raise SlugAllocationExhausted()


class OnboardingService:
    def __init__(self, config: Optional[ShopConfig] = None, allocator: Optional[SlugAllocator] = None):
        self.config = config or ShopConfig.from_settings()
        self.allocator = allocator or SlugAllocator(self.config.slug_max_attempts)

    def create_shop(self, owner, data: Dict) -> Shop:
        """
        Create the owner's shop

        Args:
            owner: Account creating the shop
            data: Cleaned OnboardingForm data

        Raises:
            AlreadyOnboarded: Owner already has a shop
            SlugAllocationExhausted: No free slug for this business name
        """
        if Shop.objects.filter(owner=owner).exists():
            raise AlreadyOnboarded()

        tried = set()

        for _ in range(self.allocator.max_attempts):
            slug = self.allocator.allocate(data['business_name'], skip=tried)

            try:
                with transaction.atomic():
                    shop = Shop.objects.create(
                        owner=owner,
                        name=data['business_name'],
                        slug=slug,
                        whatsapp_number=data['whatsapp_number'],
                        notification_chat_id=data.get('notification_chat_id', ''),
                        bank_name=data.get('bank_name', ''),
                        bank_account_number=data.get('account_number', ''),
                        bank_account_name=data.get('holder_name', ''),
                        hero_title=data['business_name'],
                    )
            except IntegrityError:
                # Lost a race: either another request created this owner's shop or took the slug
                if Shop.objects.filter(owner=owner).exists():
                    raise AlreadyOnboarded()
                logger.warning(f'Slug "{slug}" taken during insert. Retrying.')
                tried.add(slug)
                continue

            logger.info(f'Shop "{shop.name}" created for {owner.email} at /{shop.slug}')
            return shop

        raise SlugAllocationExhausted()
