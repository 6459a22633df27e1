"""
Shared pytest fixtures
"""

from unittest import mock

import pytest

from tests import factories


@pytest.fixture
def config():
    return factories.TEST_CONFIG


@pytest.fixture
def merchant(db):
    return factories.create_user('merchant@example.com')


@pytest.fixture
def other_merchant(db):
    return factories.create_user('other@example.com')


@pytest.fixture
def admin_user(db):
    return factories.create_user(factories.ADMIN_EMAIL)


@pytest.fixture
def shop(merchant):
    return factories.create_shop(merchant)


@pytest.fixture
def product(shop):
    return factories.create_product(shop)


@pytest.fixture
def telegram_post():
    """Patch the Telegram transport's HTTP call with a successful reply"""
    with mock.patch('apps.shops.services.notifications.requests.post') as post:
        post.return_value = factories.telegram_ok()
        yield post
