"""
Tests for the send_test_notification management command
"""

from io import StringIO
from unittest import mock

import pytest
import requests
from django.core.management import call_command
from django.core.management.base import CommandError

from tests import factories

NOTIFY_POST = 'apps.shops.services.notifications.requests.post'


def test_sends_to_given_contact(telegram_post):
    out = StringIO()

    call_command('send_test_notification', '123456789', stdout=out)

    assert 'Test notification sent to 123456789 via telegram' in out.getvalue()
    assert telegram_post.call_args.kwargs['json']['chat_id'] == '123456789'


def test_uses_shop_contact(telegram_post, shop):
    out = StringIO()

    call_command('send_test_notification', '--shop', shop.slug, stdout=out)

    payload = telegram_post.call_args.kwargs['json']
    assert payload['chat_id'] == '123456789'
    assert 'Amaka Footwear' in payload['text']


@pytest.mark.django_db
def test_unknown_shop():
    with pytest.raises(CommandError, match="No shop with slug 'nobody'"):
        call_command('send_test_notification', '--shop', 'nobody')


def test_contact_required():
    with pytest.raises(CommandError):
        call_command('send_test_notification')


def test_mock_backend_sends_nothing():
    out = StringIO()

    with mock.patch(NOTIFY_POST) as post:
        call_command('send_test_notification', '08012345678', '--backend', 'mock', stdout=out)

    post.assert_not_called()
    assert 'via mock' in out.getvalue()


def test_delivery_failure():
    with mock.patch(NOTIFY_POST, side_effect=requests.exceptions.ConnectionError('offline')):
        with pytest.raises(CommandError, match='Notification failed'):
            call_command('send_test_notification', '123456789')


def test_unconfigured_notifier_warns(settings):
    settings.TELEGRAM_BOT_TOKEN = ''
    out = StringIO()

    call_command('send_test_notification', '123456789', stdout=out)

    assert 'not configured' in out.getvalue()


def test_sms_backend(settings):
    settings.TERMII_API_KEY = 'termii-key'
    out = StringIO()

    with mock.patch(NOTIFY_POST) as post:
        post.return_value = factories.fake_response({'message': 'Successfully Sent', 'message_id': '77'})
        call_command('send_test_notification', '08012345678', '--backend', 'sms', stdout=out)

    assert post.call_args.kwargs['json']['to'] == '2348012345678'
    assert 'message id: 77' in out.getvalue()
