"""
Tests for the Paystack client
"""

from decimal import Decimal
from unittest import mock

import pytest
import requests

from apps.shops.exceptions import GatewayError, MalformedGatewayResponse
from apps.shops.services.paystack import PaystackService
from tests import factories

POST = 'apps.shops.services.paystack.requests.post'
GET = 'apps.shops.services.paystack.requests.get'


@pytest.fixture
def paystack():
    return PaystackService(factories.TEST_CONFIG)


def test_kobo_conversion(paystack):
    assert paystack._convert_to_kobo(Decimal('4800.00')) == 480000
    assert paystack._convert_to_kobo(Decimal('10.55')) == 1055
    assert paystack._convert_to_naira(480000) == Decimal('4800')


def test_missing_secret_key():
    paystack = PaystackService(factories.TEST_CONFIG.with_overrides(paystack_secret_key=''))

    with mock.patch(GET) as get:
        with pytest.raises(GatewayError, match='not configured'):
            paystack.verify_transaction('sub_1_1')

    get.assert_not_called()


def test_http_error_uses_paystack_message(paystack):
    with mock.patch(GET) as get:
        get.return_value = factories.fake_response(
            {'status': False, 'message': 'Transaction reference not found'},
            status_code=400,
        )
        with pytest.raises(GatewayError, match='Transaction reference not found'):
            paystack.verify_transaction('sub_1_1')


def test_status_false_in_body(paystack):
    with mock.patch(POST) as post:
        post.return_value = factories.fake_response({'status': False, 'message': 'Invalid key'})
        with pytest.raises(GatewayError, match='Invalid key'):
            paystack.initialize_transaction('a@b.test', Decimal('4800.00'), 'sub_1_1', 'http://testserver/cb/')


def test_non_json_body(paystack):
    response = factories.fake_response(None)
    response.json.side_effect = ValueError('no json')

    with mock.patch(GET, return_value=response):
        with pytest.raises(MalformedGatewayResponse):
            paystack.verify_transaction('sub_1_1')


def test_verify_normalizes_empty_metadata(paystack):
    payload = factories.paystack_verify_payload('sub_1_1', metadata='')

    with mock.patch(GET, return_value=factories.fake_response(payload)):
        details = paystack.verify_transaction('sub_1_1')

    assert details['status'] == 'success'
    assert details['amount'] == Decimal('4800')
    assert details['metadata'] == {}
    assert details['paid_at'] == '2024-01-01T00:00:00.000Z'


def test_verify_connection_error(paystack):
    with mock.patch(GET, side_effect=requests.exceptions.ConnectionError('boom')):
        with pytest.raises(GatewayError, match='API Error'):
            paystack.verify_transaction('sub_1_1')


def test_mock_mode_never_calls_api():
    paystack = PaystackService(factories.TEST_CONFIG.with_overrides(use_mock_paystack=True))

    with mock.patch(POST) as post, mock.patch(GET) as get:
        session = paystack.initialize_transaction('a@b.test', Decimal('4800.00'), 'sub_7_1700', 'http://testserver/cb/')
        details = paystack.verify_transaction('sub_7_1700')

    post.assert_not_called()
    get.assert_not_called()
    assert session['reference'] == 'sub_7_1700'
    assert details['status'] == 'success'
    assert details['metadata'] == {'subscriptionId': 7}
