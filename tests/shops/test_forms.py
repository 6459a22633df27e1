"""
Request forms accept camelCase keys as well as snake_case ones
"""

from django.http import QueryDict

from apps.shops.forms import OrderListForm, PaymentVerifyForm


def test_order_list_reads_camel_case_slug():
    form = OrderListForm(QueryDict('shopSlug=kemi-bags&status=pending'))

    assert form.is_valid()
    assert form.cleaned_data['shop_slug'] == 'kemi-bags'


def test_snake_case_wins_when_both_are_sent():
    form = OrderListForm(QueryDict('shopSlug=kemi-bags&shop_slug=amaka-footwear'))

    assert form.is_valid()
    assert form.cleaned_data['shop_slug'] == 'amaka-footwear'


def test_verify_reads_camel_case_subscription_id():
    data = {'reference': 'sub_7_1704067200000', 'subscriptionId': 7}

    form = PaymentVerifyForm(data)

    assert form.is_valid()
    assert form.cleaned_data['subscription_id'] == 7
    assert 'subscription_id' not in data
