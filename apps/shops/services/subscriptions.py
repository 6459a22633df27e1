"""
Subscription Services
Subscription gate (may this account use onboarding/dashboard?) and the
two-step Paystack payment flow that activates a subscription.

Store updates are short transactions; Paystack is always called outside them.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Any, Dict, Optional

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from ..config import ShopConfig
from ..exceptions import (
    AccountNotFound,
    InvalidInput,
    MalformedGatewayResponse,
    ShopError,
    SubscriptionNotFound,
)
from ..models import PaymentRecord, Subscription
from .paystack import PaystackService

logger = logging.getLogger(__name__)

User = get_user_model()


def _epoch_millis() -> int:
    return int(timezone.now().timestamp() * 1000)


def parse_paid_at(value) -> datetime:
    """
    Parse Paystack's paid_at timestamp into an aware datetime (UTC if no offset given)

    Raises:
        MalformedGatewayResponse: Missing or unparseable timestamp
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = parse_datetime(value) if value else None
        except ValueError:
            parsed = None

    if parsed is None:
        raise MalformedGatewayResponse('Payment gateway did not return a valid payment time')

    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


# ==========================================
# SUBSCRIPTION GATE
# ==========================================

@dataclass
class GateResult:
    active: bool
    is_admin: bool = False
    subscription: Optional[Subscription] = None

    def to_dict(self) -> Dict[str, Any]:
        subscription = self.subscription
        return {
            'active': self.active,
            'is_admin': self.is_admin,
            'status': subscription.status if subscription else None,
            'expires_at': subscription.expires_at.isoformat() if subscription and subscription.expires_at else None,
        }


class SubscriptionGate:
    """
    Decides whether an account may access onboarding and the dashboard.
    Admin accounts always pass and get a bootstrapped active subscription.
    """

    def __init__(self, config: Optional[ShopConfig] = None):
        self.config = config or ShopConfig.from_settings()

    def is_admin_email(self, email: str) -> bool:
        return self.config.is_admin_email(email)

    def ensure_admin_subscription(self, user) -> Subscription:
        """
        Make sure an admin account has a subscription row.
        Does nothing if the account already has one. Concurrent calls
        create at most one row (owner is unique).
        """
        now = timezone.now()
        expires_at = now + timedelta(days=self.config.subscription_days)

        subscription, created = Subscription.objects.get_or_create(
            owner=user,
            defaults={
                'status': Subscription.STATUS_ACTIVE,
                'plan_amount': 0,
                'payment_reference': 'admin',
                'paid_at': now,
                'expires_at': expires_at,
                'renewal_date': expires_at,
            }
        )

        if created:
            logger.info(f'Admin subscription created for {user.email} (expires {expires_at:%Y-%m-%d})')

        return subscription

    def evaluate(self, user) -> GateResult:
        if self.is_admin_email(user.email):
            subscription = self.ensure_admin_subscription(user)
            return GateResult(active=True, is_admin=True, subscription=subscription)

        subscription = Subscription.objects.filter(owner=user).first()
        if subscription is None:
            return GateResult(active=False)

        return GateResult(active=subscription.is_current(), subscription=subscription)

    def is_active(self, account_id) -> GateResult:
        """
        Gate decision for an account id

        Raises:
            AccountNotFound: No account with this id
        """
        try:
            user = User.objects.get(pk=account_id)
        except (User.DoesNotExist, ValueError, TypeError):
            raise AccountNotFound()

        return self.evaluate(user)

    def check(self, user) -> GateResult:
        """Fail-closed wrapper for protected views: any error means not active"""
        try:
            return self.evaluate(user)
        except (ShopError, DatabaseError) as e:
            logger.error(f'Subscription gate failed for user {user.pk}: {str(e)}')
            return GateResult(active=False)


# ==========================================
# PAYMENT FLOW
# ==========================================

@dataclass
class PaymentInitResult:
    OUTCOME_ADMIN = 'admin'
    OUTCOME_ALREADY_PAID = 'already_paid'
    OUTCOME_SESSION = 'success'

    outcome: str
    subscription: Optional[Subscription] = None
    authorization_url: str = ''
    access_code: str = ''
    reference: str = ''

    def to_dict(self) -> Dict[str, Any]:
        if self.outcome == self.OUTCOME_ADMIN:
            return {'status': self.outcome, 'message': 'Admin user - payment skipped'}
        if self.outcome == self.OUTCOME_ALREADY_PAID:
            return {'status': self.outcome, 'message': 'User already has an active subscription'}
        return {
            'status': self.outcome,
            'authorization_url': self.authorization_url,
            'access_code': self.access_code,
            'reference': self.reference,
            'subscription_id': self.subscription.pk if self.subscription else None,
        }


@dataclass
class PaymentVerifyResult:
    verified: bool
    subscription: Optional[Subscription]
    record: PaymentRecord
    details: Dict[str, Any]
    newly_activated: bool = False


class PaymentFlowController:
    """
    initialize -> (customer pays on Paystack) -> verify

    Subscription states: none -> pending -> active. Every verification
    attempt appends a PaymentRecord.
    """

    def __init__(
        self,
        config: Optional[ShopConfig] = None,
        gateway: Optional[PaystackService] = None,
        gate: Optional[SubscriptionGate] = None
    ):
        self.config = config or ShopConfig.from_settings()
        self.gateway = gateway or PaystackService(self.config)
        self.gate = gate or SubscriptionGate(self.config)

    # ==========================================
    # INITIALIZE
    # ==========================================

    def initialize(self, email: str, account_id) -> PaymentInitResult:
        """
        Start a subscription payment

        Args:
            email: Account email (used for the admin check and by Paystack)
            account_id: Account primary key

        Returns:
            PaymentInitResult with outcome admin, already_paid or success

        Raises:
            AccountNotFound: Unknown account
            GatewayError / MalformedGatewayResponse: Paystack failed; the
                pending subscription is kept and reused by the next attempt
        """
        try:
            user = User.objects.get(pk=account_id)
        except (User.DoesNotExist, ValueError, TypeError):
            raise AccountNotFound()

        if self.gate.is_admin_email(email):
            subscription = self.gate.ensure_admin_subscription(user)
            return PaymentInitResult(PaymentInitResult.OUTCOME_ADMIN, subscription=subscription)

        subscription = self._get_pending_subscription(user)
        if subscription.status == Subscription.STATUS_ACTIVE:
            return PaymentInitResult(PaymentInitResult.OUTCOME_ALREADY_PAID, subscription=subscription)

        reference = f'sub_{subscription.pk}_{_epoch_millis()}'

        session = self.gateway.initialize_transaction(
            email=email,
            amount=subscription.plan_amount,
            reference=reference,
            callback_url=self.config.callback_url,
            metadata={
                'userId': user.pk,
                'subscriptionId': subscription.pk,
                'planName': self.config.plan_name,
            }
        )

        # Only a still-pending row takes the new reference
        Subscription.objects.filter(
            pk=subscription.pk,
            status=Subscription.STATUS_PENDING
        ).update(payment_reference=session['reference'], updated_at=timezone.now())
        subscription.payment_reference = session['reference']

        logger.info(f'Payment session {session["reference"]} opened for subscription {subscription.pk}')

        return PaymentInitResult(
            PaymentInitResult.OUTCOME_SESSION,
            subscription=subscription,
            authorization_url=session['authorization_url'],
            access_code=session['access_code'],
            reference=session['reference'],
        )

    def _get_pending_subscription(self, user) -> Subscription:
        """
        Return the account's single subscription, creating it as pending if absent.
        An expired "active" row is reset to pending when renew_expired is on.
        """
        with transaction.atomic():
            subscription, created = Subscription.objects.select_for_update().get_or_create(
                owner=user,
                defaults={
                    'status': Subscription.STATUS_PENDING,
                    'plan_amount': self.config.plan_amount,
                }
            )

            if created:
                logger.info(f'Pending subscription {subscription.pk} created for {user.email}')
                return subscription

            if subscription.status == Subscription.STATUS_ACTIVE:
                if subscription.is_current() or not self.config.renew_expired:
                    return subscription

                logger.info(f'Subscription {subscription.pk} expired on {subscription.expires_at}. Starting renewal.')
                subscription.status = Subscription.STATUS_PENDING

            subscription.plan_amount = self.config.plan_amount
            subscription.save(update_fields=['status', 'plan_amount', 'updated_at'])

        return subscription

    # ==========================================
    # VERIFY
    # ==========================================

    def verify(self, reference: str, subscription_id=None) -> PaymentVerifyResult:
        """
        Verify a Paystack transaction and activate the subscription

        Safe to call more than once for the same reference: the subscription
        is only updated when it is not already active with this reference,
        and only one success record exists per reference.

        Args:
            reference: Paystack transaction reference
            subscription_id: Optional subscription id sent by the client

        Raises:
            InvalidInput: Missing reference
            GatewayError: Paystack could not be reached (not a declined payment)
            SubscriptionNotFound: Payment succeeded but matches no subscription
        """
        reference = (reference or '').strip()
        if not reference:
            raise InvalidInput('Reference is required')

        details = self.gateway.verify_transaction(reference)
        subscription = self._resolve_subscription(reference, subscription_id, details.get('metadata') or {})
        owner_id = subscription.owner_id if subscription else self._metadata_user_id(details)

        if details.get('status') != 'success':
            return self._record_failure(reference, subscription, owner_id, details)

        paid_at = parse_paid_at(details.get('paid_at'))
        expires_at = paid_at + timedelta(days=self.config.subscription_days)

        with transaction.atomic():
            updated = 0
            if subscription is not None:
                updated = Subscription.objects.filter(pk=subscription.pk).exclude(
                    status=Subscription.STATUS_ACTIVE,
                    payment_reference=reference,
                ).update(
                    status=Subscription.STATUS_ACTIVE,
                    payment_reference=reference,
                    paid_at=paid_at,
                    expires_at=expires_at,
                    renewal_date=expires_at,
                    updated_at=timezone.now(),
                )

            record, created = PaymentRecord.objects.get_or_create(
                external_reference=reference,
                status=PaymentRecord.STATUS_SUCCESS,
                defaults={
                    'owner_id': owner_id,
                    'subscription': subscription,
                    'amount': details.get('amount') or 0,
                    'method': 'paystack',
                    'raw_metadata': details.get('raw') or {},
                }
            )

        if subscription is None:
            logger.error(f'Payment {reference} succeeded but matches no subscription')
            raise SubscriptionNotFound('Payment received but no subscription matches it. Please contact support.')

        subscription.refresh_from_db()

        if updated:
            logger.info(f'Subscription {subscription.pk} activated by {reference} until {expires_at:%Y-%m-%d}')
        else:
            logger.info(f'Subscription {subscription.pk} already active for {reference}. Nothing to update.')

        return PaymentVerifyResult(
            verified=True,
            subscription=subscription,
            record=record,
            details=details,
            newly_activated=bool(updated),
        )

    def _record_failure(self, reference, subscription, owner_id, details) -> PaymentVerifyResult:
        with transaction.atomic():
            if subscription is not None:
                # Never downgrade a subscription that another reference activated
                Subscription.objects.filter(
                    pk=subscription.pk,
                    payment_reference=reference
                ).exclude(
                    status=Subscription.STATUS_PENDING
                ).update(status=Subscription.STATUS_PENDING, updated_at=timezone.now())

            record = PaymentRecord.objects.create(
                owner_id=owner_id,
                subscription=subscription,
                amount=details.get('amount') or 0,
                external_reference=reference,
                status=PaymentRecord.STATUS_FAILED,
                method='paystack',
                raw_metadata=details.get('raw') or {},
            )

        if subscription is not None:
            subscription.refresh_from_db()

        logger.warning(f'Payment {reference} not successful (gateway status: {details.get("status")})')

        return PaymentVerifyResult(verified=False, subscription=subscription, record=record, details=details)

    def _resolve_subscription(self, reference: str, subscription_id, metadata: Dict) -> Optional[Subscription]:
        """
        Find the subscription a reference pays for.
        Paystack metadata wins over the client-supplied id, then the stored reference.
        """
        metadata_id = metadata.get('subscriptionId')

        if metadata_id and subscription_id and str(metadata_id) != str(subscription_id):
            logger.warning(
                f'Payment {reference}: client subscription id {subscription_id} '
                f'does not match gateway metadata {metadata_id}. Using gateway metadata.'
            )

        for candidate in (metadata_id, subscription_id):
            if not candidate:
                continue
            try:
                return Subscription.objects.get(pk=int(candidate))
            except (Subscription.DoesNotExist, ValueError, TypeError):
                logger.warning(f'Payment {reference}: subscription {candidate} not found')

        return Subscription.objects.filter(payment_reference=reference).first()

    def _metadata_user_id(self, details: Dict) -> Optional[int]:
        user_id = (details.get('metadata') or {}).get('userId')
        try:
            user_id = int(user_id)
        except (TypeError, ValueError):
            return None
        return user_id if User.objects.filter(pk=user_id).exists() else None
