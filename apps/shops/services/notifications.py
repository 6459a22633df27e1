"""
Notification Service
Tells a merchant about a new order on their configured chat contact.

Transports (NOTIFIER_BACKEND):
- telegram: Telegram Bot API sendMessage (TELEGRAM_BOT_TOKEN)
- sms: Termii API (TERMII_API_KEY, TERMII_SENDER_ID)
- mock: log only, for local development

Notification is a side effect: NotificationService.notify never raises,
failures come back as NotificationResult(success=False).
"""

import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import requests
from django.utils import timezone

from ..config import ShopConfig
from ..exceptions import NotifierError
from .utils import format_currency, normalize_phone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderSummary:
    order_id: str
    shop_name: str
    product_name: str
    quantity: int
    amount: Decimal
    customer_name: str
    customer_phone: str
    address: str

    @classmethod
    def from_order(cls, order) -> 'OrderSummary':
        return cls(
            order_id=order.short_id,
            shop_name=order.shop.name,
            product_name=order.product_name,
            quantity=order.quantity,
            amount=order.amount,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            address=order.address,
        )


@dataclass
class NotificationResult:
    success: bool
    skipped: bool = False
    message_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self):
        return {
            'success': self.success,
            'skipped': self.skipped,
            'message_id': self.message_id,
            'error': self.error,
        }


# ==========================================
# MESSAGE FORMATTING
# ==========================================

_MARKDOWN_V2_SPECIAL = re.compile(r'([_*\[\]()~`>#+\-=|{}.!\\])')


def escape_markdown(text) -> str:
    """Escape a value for Telegram MarkdownV2"""
    return _MARKDOWN_V2_SPECIAL.sub(r'\\\1', str(text))


def format_order_message(summary: OrderSummary, markdown: bool = False) -> str:
    """
    Build the new order message sent to the merchant

    Args:
        summary: Order details
        markdown: Escape for Telegram MarkdownV2 and bold the labels
    """
    fields = [
        ('Shop', summary.shop_name),
        ('Product', f'{summary.product_name} x {summary.quantity}'),
        ('Amount', format_currency(summary.amount)),
        ('Customer', summary.customer_name),
        ('Phone', summary.customer_phone),
        ('Address', summary.address),
    ]

    if not markdown:
        lines = [f'New order #{summary.order_id}']
        lines += [f'{label}: {value}' for label, value in fields]
        lines.append('Check your dashboard to approve or reject.')
        return '\n'.join(lines)

    lines = [f'🛒 *New order* \\#{escape_markdown(summary.order_id)}', '']
    lines += [f'*{label}:* {escape_markdown(value)}' for label, value in fields]
    lines += ['', escape_markdown('Check your dashboard to approve or reject.')]
    return '\n'.join(lines)


# ==========================================
# TRANSPORTS
# ==========================================

class TelegramTransport:
    name = 'telegram'
    api_base = 'https://api.telegram.org'

    def __init__(self, bot_token: str, timeout: float = 30):
        self.bot_token = bot_token
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.bot_token)

    def render(self, summary: OrderSummary) -> str:
        return format_order_message(summary, markdown=True)

    def send(self, contact_id: str, text: str) -> Optional[str]:
        """
        Send a message with the Telegram Bot API

        Returns:
            Telegram message id

        Raises:
            NotifierError: Network failure, timeout or ok=false
        """
        url = f'{self.api_base}/bot{self.bot_token}/sendMessage'

        try:
            response = requests.post(
                url,
                json={
                    'chat_id': contact_id,
                    'text': text,
                    'parse_mode': 'MarkdownV2',
                },
                timeout=self.timeout
            )
            result = response.json()
        except requests.exceptions.Timeout:
            raise NotifierError('Telegram request timed out')
        except requests.exceptions.RequestException as e:
            raise NotifierError(f'Telegram request failed: {str(e)}')
        except ValueError:
            raise NotifierError('Telegram returned an unreadable response')

        if not isinstance(result, dict):
            raise NotifierError('Telegram returned an unexpected response')

        if not result.get('ok'):
            raise NotifierError(result.get('description', 'Telegram rejected the message'))

        sent = result.get('result')
        message_id = sent.get('message_id') if isinstance(sent, dict) else None
        return str(message_id) if message_id is not None else None


class SMSTransport:
    name = 'sms'
    api_url = 'https://api.ng.termii.com/api/sms/send'

    def __init__(self, api_key: str, sender_id: str = 'ShopZa', timeout: float = 30):
        self.api_key = api_key
        self.sender_id = sender_id
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def render(self, summary: OrderSummary) -> str:
        return format_order_message(summary)

    def send(self, contact_id: str, text: str) -> Optional[str]:
        """
        Send SMS using Termii API

        Raises:
            NotifierError: Network failure, timeout or Termii did not accept the message
        """
        phone = normalize_phone(contact_id)

        try:
            response = requests.post(
                self.api_url,
                json={
                    'api_key': self.api_key,
                    'to': phone,
                    'from': self.sender_id,
                    'sms': text,
                    'type': 'plain',
                    'channel': 'generic'
                },
                timeout=self.timeout
            )
            response.raise_for_status()
            result = response.json()
        except requests.exceptions.Timeout:
            raise NotifierError('Termii request timed out')
        except requests.exceptions.RequestException as e:
            raise NotifierError(f'Termii request failed: {str(e)}')
        except ValueError:
            raise NotifierError('Termii returned an unreadable response')

        if not isinstance(result, dict):
            raise NotifierError('Termii returned an unexpected response')

        if result.get('message') != 'Successfully Sent':
            raise NotifierError(f'SMS send failed: {result.get("message", "unknown error")}')

        message_id = result.get('message_id')
        return str(message_id) if message_id is not None else None


class MockTransport:
    name = 'mock'

    def is_configured(self) -> bool:
        return True

    def render(self, summary: OrderSummary) -> str:
        return format_order_message(summary)

    def send(self, contact_id: str, text: str) -> Optional[str]:
        logger.info(f'[MOCK NOTIFY] To: {contact_id} | Message: {text[:100]}...')
        return f'mock-{int(timezone.now().timestamp() * 1000)}'


def build_transport(config: ShopConfig):
    backend = (config.notifier_backend or '').lower()

    if backend == 'telegram':
        return TelegramTransport(config.telegram_bot_token, timeout=config.http_timeout)
    if backend == 'sms':
        return SMSTransport(config.termii_api_key, config.termii_sender_id, timeout=config.http_timeout)
    if backend == 'mock':
        return MockTransport()

    logger.warning(f'Unknown NOTIFIER_BACKEND "{backend}". Using mock transport.')
    return MockTransport()


# ==========================================
# NOTIFICATION SERVICE
# ==========================================

class NotificationService:
    """
    Single entry point for merchant notifications, whatever the transport
    """

    def __init__(self, config: Optional[ShopConfig] = None, transport=None):
        self.config = config or ShopConfig.from_settings()
        self.transport = transport or build_transport(self.config)

    def notify(self, contact_id: str, summary: OrderSummary) -> NotificationResult:
        """
        Deliver a new order message to the merchant

        Args:
            contact_id: Telegram chat id or phone number
            summary: Order details

        Returns:
            NotificationResult. Skipped (success=True, skipped=True) when the
            transport is not configured or the shop has no contact.
        """
        if not contact_id:
            logger.info(f'No notification contact for order #{summary.order_id}. Skipping.')
            return NotificationResult(success=True, skipped=True)

        if not self.transport.is_configured():
            logger.warning(f'{self.transport.name} notifier not configured. Skipping order #{summary.order_id}.')
            return NotificationResult(success=True, skipped=True)

        try:
            message_id = self.transport.send(contact_id, self.transport.render(summary))
        except NotifierError as e:
            logger.error(
                f'Order notification failed via {self.transport.name} '
                f'(contact {contact_id}, order #{summary.order_id}): {e.message}'
            )
            return NotificationResult(success=False, error=e.message)
        except Exception as e:
            logger.exception(
                f'Unexpected error sending order #{summary.order_id} via {self.transport.name} '
                f'(contact {contact_id})'
            )
            return NotificationResult(success=False, error=f'Notification failed: {str(e)}')

        logger.info(f'Order #{summary.order_id} notification sent via {self.transport.name} to {contact_id}')
        return NotificationResult(success=True, message_id=message_id)

    def send_test(self, contact_id: str, shop_name: str = 'Test Shop') -> NotificationResult:
        """Send a sample order message to check the notifier setup"""
        summary = OrderSummary(
            order_id='test0000',
            shop_name=shop_name,
            product_name='Sample product',
            quantity=1,
            amount=Decimal('1000.00'),
            customer_name='Test Customer',
            customer_phone='08012345678',
            address='This is a test notification',
        )
        return self.notify(contact_id, summary)
