"""
Shop App Services
Business logic kept out of views: payments, subscriptions, onboarding,
orders, catalog and merchant notifications.
"""
