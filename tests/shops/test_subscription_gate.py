"""
Tests for the subscription gate and admin bypass
"""

from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.db import DatabaseError, IntegrityError, transaction
from django.test import TestCase
from django.utils import timezone

from apps.shops.exceptions import AccountNotFound
from apps.shops.models import Subscription
from apps.shops.services.subscriptions import SubscriptionGate
from tests import factories


class SubscriptionGateTestCase(TestCase):
    def setUp(self):
        self.gate = SubscriptionGate(config=factories.TEST_CONFIG)
        self.user = factories.create_user()

    def test_unknown_account_raises_not_found(self):
        with self.assertRaises(AccountNotFound):
            self.gate.is_active(999999)

    def test_no_subscription_is_inactive(self):
        result = self.gate.is_active(self.user.pk)

        self.assertFalse(result.active)
        self.assertFalse(result.is_admin)
        self.assertIsNone(result.subscription)

    def test_current_active_subscription_passes(self):
        factories.create_active_subscription(self.user, days_left=10)

        self.assertTrue(self.gate.is_active(self.user.pk).active)

    def test_active_without_expiry_passes(self):
        Subscription.objects.create(
            owner=self.user, status='active', plan_amount=Decimal('4800.00'), expires_at=None
        )

        self.assertTrue(self.gate.is_active(self.user.pk).active)

    def test_expired_active_subscription_fails(self):
        subscription = factories.create_active_subscription(self.user)
        subscription.expires_at = timezone.now() - timedelta(minutes=1)
        subscription.save()

        self.assertFalse(self.gate.is_active(self.user.pk).active)

    def test_pending_subscription_fails(self):
        Subscription.objects.create(owner=self.user, status='pending', plan_amount=Decimal('4800.00'))

        self.assertFalse(self.gate.is_active(self.user.pk).active)

    def test_to_dict(self):
        factories.create_active_subscription(self.user)

        data = self.gate.is_active(self.user.pk).to_dict()

        self.assertTrue(data['active'])
        self.assertEqual(data['status'], 'active')
        self.assertIsNotNone(data['expires_at'])


class AdminBypassTestCase(TestCase):
    def setUp(self):
        self.gate = SubscriptionGate(config=factories.TEST_CONFIG)
        self.admin = factories.create_user(factories.ADMIN_EMAIL)

    def test_admin_is_active_with_no_prior_subscription(self):
        self.assertFalse(Subscription.objects.filter(owner=self.admin).exists())

        result = self.gate.is_active(self.admin.pk)

        self.assertTrue(result.active)
        self.assertTrue(result.is_admin)
        subscription = Subscription.objects.get(owner=self.admin)
        self.assertEqual(subscription.status, 'active')
        # roughly one year
        days = (subscription.expires_at - timezone.now()).days
        self.assertIn(days, (364, 365))

    def test_repeated_calls_reuse_one_subscription(self):
        """Sequential lookups reuse the row. Uniqueness under races is test_store_rejects_a_second_subscription_row."""
        for _ in range(5):
            self.assertTrue(self.gate.is_active(self.admin.pk).active)

        self.assertEqual(Subscription.objects.filter(owner=self.admin).count(), 1)

    def test_existing_subscription_is_left_alone(self):
        existing = Subscription.objects.create(
            owner=self.admin, status='pending', plan_amount=Decimal('4800.00')
        )

        result = self.gate.is_active(self.admin.pk)

        self.assertTrue(result.active)
        existing.refresh_from_db()
        self.assertEqual(existing.status, 'pending')
        self.assertEqual(Subscription.objects.filter(owner=self.admin).count(), 1)

    def test_store_rejects_a_second_subscription_row(self):
        self.gate.ensure_admin_subscription(self.admin)

        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Subscription.objects.create(owner=self.admin, status='active', plan_amount=0)

    def test_admin_email_match_is_case_insensitive(self):
        self.assertTrue(self.gate.is_admin_email('Admin@ShopZa.TEST '))
        self.assertFalse(self.gate.is_admin_email('someone@shopza.test'))
        self.assertFalse(self.gate.is_admin_email(''))

    def test_multiple_admin_emails(self):
        config = factories.TEST_CONFIG.with_overrides(admin_emails=('a@x.test', 'b@x.test'))
        gate = SubscriptionGate(config=config)

        self.assertTrue(gate.is_admin_email('b@x.test'))


class FailClosedCheckTestCase(TestCase):
    def setUp(self):
        self.gate = SubscriptionGate(config=factories.TEST_CONFIG)
        self.user = factories.create_user()
        factories.create_active_subscription(self.user)

    def test_check_passes_for_active_subscription(self):
        self.assertTrue(self.gate.check(self.user).active)

    def test_database_error_counts_as_inactive(self):
        with mock.patch.object(SubscriptionGate, 'evaluate', side_effect=DatabaseError('db down')):
            result = self.gate.check(self.user)

        self.assertFalse(result.active)
