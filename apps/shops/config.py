"""
Shop configuration snapshot

Business settings (admin emails, plan amount, API keys, timeouts) are read
once from Django settings into a frozen ShopConfig and handed to the
services that need them. Tests build their own ShopConfig with fake values.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Tuple

from django.conf import settings


@dataclass(frozen=True)
class ShopConfig:
    app_url: str = 'http://localhost:8000'
    admin_emails: Tuple[str, ...] = ()

    # Subscription plan
    plan_amount: Decimal = Decimal('4800.00')
    plan_name: str = 'starter'
    subscription_days: int = 365
    renew_expired: bool = True

    # Paystack
    paystack_secret_key: str = ''
    paystack_public_key: str = ''
    paystack_base_url: str = 'https://api.paystack.co'
    use_mock_paystack: bool = False

    # Notifier
    notifier_backend: str = 'telegram'
    telegram_bot_token: str = field(default='', repr=False)
    termii_api_key: str = field(default='', repr=False)
    termii_sender_id: str = 'ShopZa'

    http_timeout: float = 30.0
    slug_max_attempts: int = 50

    @classmethod
    def from_settings(cls) -> 'ShopConfig':
        """Build a config from the active Django settings module"""
        return cls(
            app_url=settings.APP_URL.rstrip('/'),
            admin_emails=tuple(e.strip().lower() for e in settings.ADMIN_EMAILS if e.strip()),
            plan_amount=Decimal(settings.SUBSCRIPTION_PLAN_AMOUNT),
            plan_name=settings.SUBSCRIPTION_PLAN_NAME,
            subscription_days=int(settings.SUBSCRIPTION_DAYS),
            renew_expired=bool(settings.SUBSCRIPTION_RENEW_EXPIRED),
            paystack_secret_key=settings.PAYSTACK_SECRET_KEY,
            paystack_public_key=settings.PAYSTACK_PUBLIC_KEY,
            paystack_base_url=settings.PAYSTACK_BASE_URL.rstrip('/'),
            use_mock_paystack=bool(settings.USE_MOCK_PAYSTACK),
            notifier_backend=settings.NOTIFIER_BACKEND,
            telegram_bot_token=settings.TELEGRAM_BOT_TOKEN,
            termii_api_key=settings.TERMII_API_KEY,
            termii_sender_id=settings.TERMII_SENDER_ID,
            http_timeout=float(settings.HTTP_TIMEOUT_SECONDS),
            slug_max_attempts=int(settings.SLUG_MAX_ATTEMPTS),
        )

    def with_overrides(self, **changes) -> 'ShopConfig':
        return replace(self, **changes)

    @property
    def callback_url(self) -> str:
        return f'{self.app_url}/payment/callback/'

    def is_admin_email(self, email: str) -> bool:
        return bool(email) and email.strip().lower() in self.admin_emails
