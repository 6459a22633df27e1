"""
Tests for subscription payment initialize / verify
"""

from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from unittest import mock

import pytest
import requests
from django.test import TestCase
from django.utils import timezone

from apps.shops.exceptions import (
    AccountNotFound,
    GatewayError,
    InvalidInput,
    MalformedGatewayResponse,
    SubscriptionNotFound,
)
from apps.shops.models import PaymentRecord, Subscription
from apps.shops.services.subscriptions import PaymentFlowController, parse_paid_at
from tests import factories


POST = 'apps.shops.services.paystack.requests.post'
GET = 'apps.shops.services.paystack.requests.get'


class PaymentInitializeTestCase(TestCase):
    def setUp(self):
        self.controller = PaymentFlowController(config=factories.TEST_CONFIG)
        self.user = factories.create_user()

    def _echo_reference(self, url, headers=None, json=None, timeout=None):
        return factories.fake_response(factories.paystack_init_payload(json['reference']))

    def test_unknown_account(self):
        with self.assertRaises(AccountNotFound):
            self.controller.initialize('ghost@example.com', 424242)

    @mock.patch(POST)
    def test_admin_skips_payment(self, post):
        admin = factories.create_user(factories.ADMIN_EMAIL)

        result = self.controller.initialize(admin.email, admin.pk)

        self.assertEqual(result.outcome, 'admin')
        self.assertEqual(result.to_dict()['status'], 'admin')
        post.assert_not_called()
        self.assertEqual(Subscription.objects.get(owner=admin).status, 'active')

    @mock.patch(POST)
    def test_already_paid(self, post):
        factories.create_active_subscription(self.user)

        result = self.controller.initialize(self.user.email, self.user.pk)

        self.assertEqual(result.outcome, 'already_paid')
        post.assert_not_called()

    @mock.patch(POST)
    def test_opens_payment_session(self, post):
        post.side_effect = self._echo_reference

        result = self.controller.initialize(self.user.email, self.user.pk)

        subscription = Subscription.objects.get(owner=self.user)
        self.assertEqual(result.outcome, 'success')
        self.assertEqual(subscription.status, 'pending')
        self.assertEqual(subscription.plan_amount, Decimal('4800.00'))
        self.assertRegex(result.reference, rf'^sub_{subscription.pk}_\d+$')
        self.assertEqual(subscription.payment_reference, result.reference)
        self.assertEqual(result.authorization_url, 'https://checkout.paystack.com/abc123')
        self.assertEqual(result.access_code, 'abc123')

        url = post.call_args.args[0]
        payload = post.call_args.kwargs['json']
        headers = post.call_args.kwargs['headers']
        self.assertEqual(url, 'https://api.paystack.co/transaction/initialize')
        self.assertEqual(headers['Authorization'], 'Bearer sk_test_dummy')
        self.assertEqual(payload['amount'], 480000)
        self.assertEqual(payload['email'], self.user.email)
        self.assertEqual(payload['callback_url'], 'http://testserver/payment/callback/')
        self.assertEqual(payload['metadata'], {
            'userId': self.user.pk,
            'subscriptionId': subscription.pk,
            'planName': 'starter',
        })

    @mock.patch(POST)
    def test_response_dict(self, post):
        post.side_effect = self._echo_reference

        data = self.controller.initialize(self.user.email, self.user.pk).to_dict()

        self.assertEqual(data['status'], 'success')
        self.assertEqual(data['access_code'], 'abc123')
        self.assertEqual(data['subscription_id'], Subscription.objects.get(owner=self.user).pk)

    @mock.patch(POST)
    def test_second_attempt_reuses_pending_subscription(self, post):
        post.side_effect = self._echo_reference

        first = self.controller.initialize(self.user.email, self.user.pk)
        second = self.controller.initialize(self.user.email, self.user.pk)

        self.assertEqual(Subscription.objects.filter(owner=self.user).count(), 1)
        self.assertEqual(first.subscription.pk, second.subscription.pk)

    @mock.patch(POST)
    def test_gateway_failure_keeps_pending_subscription(self, post):
        post.side_effect = requests.exceptions.ConnectionError('connection refused')

        with self.assertRaises(GatewayError):
            self.controller.initialize(self.user.email, self.user.pk)

        subscription = Subscription.objects.get(owner=self.user)
        self.assertEqual(subscription.status, 'pending')
        self.assertEqual(subscription.payment_reference, '')

    @mock.patch(POST)
    def test_timeout(self, post):
        post.side_effect = requests.exceptions.Timeout()

        with self.assertRaisesMessage(GatewayError, 'Request timeout'):
            self.controller.initialize(self.user.email, self.user.pk)

    @mock.patch(POST)
    def test_missing_authorization_url(self, post):
        payload = factories.paystack_init_payload('ignored')
        del payload['data']['authorization_url']
        post.return_value = factories.fake_response(payload)

        with self.assertRaises(MalformedGatewayResponse):
            self.controller.initialize(self.user.email, self.user.pk)

    @mock.patch(POST)
    def test_expired_subscription_is_renewed(self, post):
        post.side_effect = self._echo_reference
        subscription = factories.create_active_subscription(self.user)
        subscription.expires_at = timezone.now() - timedelta(days=1)
        subscription.save()

        result = self.controller.initialize(self.user.email, self.user.pk)

        self.assertEqual(result.outcome, 'success')
        subscription.refresh_from_db()
        self.assertEqual(subscription.status, 'pending')

    @mock.patch(POST)
    def test_expired_subscription_without_renewal(self, post):
        controller = PaymentFlowController(config=factories.TEST_CONFIG.with_overrides(renew_expired=False))
        subscription = factories.create_active_subscription(self.user)
        subscription.expires_at = timezone.now() - timedelta(days=1)
        subscription.save()

        result = controller.initialize(self.user.email, self.user.pk)

        self.assertEqual(result.outcome, 'already_paid')
        post.assert_not_called()


class PaymentVerifyTestCase(TestCase):
    def setUp(self):
        self.controller = PaymentFlowController(config=factories.TEST_CONFIG)
        self.user = factories.create_user()
        self.subscription = Subscription.objects.create(
            owner=self.user,
            status='pending',
            plan_amount=Decimal('4800.00'),
        )
        self.reference = f'sub_{self.subscription.pk}_1704067200000'
        self.subscription.payment_reference = self.reference
        self.subscription.save()

    def _verify_response(self, **kwargs):
        kwargs.setdefault('metadata', {
            'userId': self.user.pk,
            'subscriptionId': self.subscription.pk,
            'planName': 'starter',
        })
        return factories.fake_response(factories.paystack_verify_payload(self.reference, **kwargs))

    def test_reference_required(self):
        with self.assertRaisesMessage(InvalidInput, 'Reference is required'):
            self.controller.verify('  ')

    @mock.patch(GET)
    def test_success_activates_for_one_year(self, get):
        get.return_value = self._verify_response()

        result = self.controller.verify(self.reference, self.subscription.pk)

        self.assertTrue(result.verified)
        self.assertTrue(result.newly_activated)
        self.subscription.refresh_from_db()
        self.assertEqual(self.subscription.status, 'active')
        self.assertEqual(self.subscription.paid_at, datetime(2024, 1, 1, tzinfo=dt_timezone.utc))
        self.assertEqual(self.subscription.expires_at, datetime(2024, 12, 31, tzinfo=dt_timezone.utc))
        self.assertEqual(self.subscription.renewal_date, self.subscription.expires_at)

        record = PaymentRecord.objects.get(external_reference=self.reference)
        self.assertEqual(record.status, 'success')
        self.assertEqual(record.amount, Decimal('4800.00'))
        self.assertEqual(record.owner, self.user)
        self.assertEqual(record.subscription, self.subscription)
        self.assertEqual(get.call_args.args[0], f'https://api.paystack.co/transaction/verify/{self.reference}')

    @mock.patch(GET)
    def test_repeat_verification_is_idempotent(self, get):
        get.return_value = self._verify_response()

        self.controller.verify(self.reference, self.subscription.pk)
        self.subscription.refresh_from_db()
        expires_at = self.subscription.expires_at

        again = self.controller.verify(self.reference, self.subscription.pk)

        self.assertTrue(again.verified)
        self.assertFalse(again.newly_activated)
        self.assertEqual(again.subscription.expires_at, expires_at)
        self.assertEqual(
            PaymentRecord.objects.filter(external_reference=self.reference, status='success').count(),
            1
        )

    @mock.patch(GET)
    def test_declined_payment(self, get):
        get.return_value = self._verify_response(status='failed')

        result = self.controller.verify(self.reference, self.subscription.pk)

        self.assertFalse(result.verified)
        self.subscription.refresh_from_db()
        self.assertEqual(self.subscription.status, 'pending')
        record = PaymentRecord.objects.get(external_reference=self.reference)
        self.assertEqual(record.status, 'failed')
        self.assertEqual(record.subscription, self.subscription)

    @mock.patch(GET)
    def test_declined_payment_without_subscription(self, get):
        get.return_value = factories.fake_response(
            factories.paystack_verify_payload('sub_999_1', status='abandoned', metadata={})
        )

        result = self.controller.verify('sub_999_1')

        self.assertFalse(result.verified)
        record = PaymentRecord.objects.get(external_reference='sub_999_1')
        self.assertEqual(record.status, 'failed')
        self.assertIsNone(record.subscription)
        self.assertIsNone(record.owner)

    @mock.patch(GET)
    def test_declined_retry_does_not_downgrade_other_activation(self, get):
        Subscription.objects.filter(pk=self.subscription.pk).update(
            status='active',
            payment_reference='sub_paid_elsewhere',
            expires_at=timezone.now() + timedelta(days=200),
        )
        get.return_value = self._verify_response(status='failed')

        self.controller.verify(self.reference, self.subscription.pk)

        self.subscription.refresh_from_db()
        self.assertEqual(self.subscription.status, 'active')

    @mock.patch(GET)
    def test_gateway_unreachable(self, get):
        get.side_effect = requests.exceptions.ConnectionError('dns failure')

        with self.assertRaises(GatewayError):
            self.controller.verify(self.reference, self.subscription.pk)

        self.assertFalse(PaymentRecord.objects.exists())
        self.subscription.refresh_from_db()
        self.assertEqual(self.subscription.status, 'pending')

    @mock.patch(GET)
    def test_subscription_found_from_metadata(self, get):
        get.return_value = self._verify_response()

        result = self.controller.verify(self.reference)

        self.assertEqual(result.subscription.pk, self.subscription.pk)
        self.assertEqual(result.subscription.status, 'active')

    @mock.patch(GET)
    def test_subscription_found_from_stored_reference(self, get):
        get.return_value = self._verify_response(metadata={})

        result = self.controller.verify(self.reference)

        self.assertEqual(result.subscription.pk, self.subscription.pk)
        self.assertEqual(result.record.owner, self.user)

    @mock.patch(GET)
    def test_metadata_beats_client_supplied_id(self, get):
        other_user = factories.create_user('other@example.com')
        other = Subscription.objects.create(owner=other_user, status='pending', plan_amount=Decimal('4800.00'))
        get.return_value = self._verify_response()

        result = self.controller.verify(self.reference, other.pk)

        self.assertEqual(result.subscription.pk, self.subscription.pk)
        other.refresh_from_db()
        self.assertEqual(other.status, 'pending')

    @mock.patch(GET)
    def test_success_without_matching_subscription(self, get):
        get.return_value = factories.fake_response(
            factories.paystack_verify_payload('sub_999_1', metadata={'subscriptionId': 999})
        )

        with self.assertRaises(SubscriptionNotFound):
            self.controller.verify('sub_999_1')

        record = PaymentRecord.objects.get(external_reference='sub_999_1')
        self.assertEqual(record.status, 'success')
        self.assertIsNone(record.subscription)

    @mock.patch(GET)
    def test_success_without_paid_at(self, get):
        get.return_value = self._verify_response(paid_at=None)

        with self.assertRaises(MalformedGatewayResponse):
            self.controller.verify(self.reference, self.subscription.pk)

        self.subscription.refresh_from_db()
        self.assertEqual(self.subscription.status, 'pending')


class MockGatewayTestCase(TestCase):
    """USE_MOCK_PAYSTACK lets the whole flow run without the real API"""

    @mock.patch(GET)
    @mock.patch(POST)
    def test_initialize_then_verify(self, post, get):
        controller = PaymentFlowController(config=factories.TEST_CONFIG.with_overrides(use_mock_paystack=True))
        user = factories.create_user()

        session = controller.initialize(user.email, user.pk)
        result = controller.verify(session.reference)

        post.assert_not_called()
        get.assert_not_called()
        self.assertTrue(result.verified)
        self.assertEqual(result.subscription.owner, user)
        self.assertTrue(result.subscription.is_current())


def test_parse_paid_at_assumes_utc_without_offset():
    parsed = parse_paid_at('2024-03-05T10:00:00')

    assert parsed == datetime(2024, 3, 5, 10, 0, tzinfo=dt_timezone.utc)


@pytest.mark.parametrize('value', [None, '', 'yesterday'])
def test_parse_paid_at_rejects_garbage(value):
    with pytest.raises(MalformedGatewayResponse):
        parse_paid_at(value)
