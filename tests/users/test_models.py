"""
Tests for the email-based user model
"""

import pytest
from django.contrib.auth import get_user_model

from tests import factories

User = get_user_model()


@pytest.mark.django_db
def test_create_user_normalizes_email():
    user = User.objects.create_user('Ngozi@EXAMPLE.com', 'testpass123')

    assert user.email == 'Ngozi@example.com'
    assert user.role == 'merchant'
    assert user.is_merchant
    assert user.check_password('testpass123')
    assert not user.is_staff


@pytest.mark.django_db
def test_create_user_requires_email():
    with pytest.raises(ValueError):
        User.objects.create_user('', 'testpass123')


@pytest.mark.django_db
def test_create_superuser():
    user = User.objects.create_superuser('root@example.com', 'testpass123')

    assert user.is_staff
    assert user.is_superuser
    assert user.role == 'admin'
    assert not user.is_merchant


@pytest.mark.django_db
def test_superuser_flags_are_enforced():
    with pytest.raises(ValueError):
        User.objects.create_superuser('root@example.com', 'testpass123', is_staff=False)


@pytest.mark.django_db
def test_names_fall_back_to_email():
    user = factories.create_user('chidi@example.com')

    assert user.get_full_name() == 'chidi@example.com'
    assert user.get_short_name() == 'chidi'

    user.display_name = 'Chidi'
    assert user.get_short_name() == 'Chidi'
    assert user.get_full_name() == 'Chidi'


@pytest.mark.django_db
def test_has_shop(merchant):
    assert merchant.has_shop is False

    factories.create_shop(merchant)
    merchant.refresh_from_db()

    assert merchant.has_shop is True
