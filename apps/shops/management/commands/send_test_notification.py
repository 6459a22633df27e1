from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from apps.shops.config import ShopConfig
from apps.shops.models import Shop
from apps.shops.services.notifications import NotificationService


class Command(BaseCommand):
    help = "Send a sample new-order message through the configured notifier (NOTIFIER_BACKEND)."

    def add_arguments(self, parser):
        parser.add_argument(
            "contact",
            nargs="?",
            help="Telegram chat id or phone number. Omit when using --shop.",
        )
        parser.add_argument(
            "--shop",
            dest="shop_slug",
            help="Send to this shop's configured notification contact",
        )
        parser.add_argument(
            "--backend",
            choices=["telegram", "sms", "mock"],
            help="Override NOTIFIER_BACKEND for this run",
        )

    def handle(self, *args, **options):
        config = ShopConfig.from_settings()
        if options["backend"]:
            config = config.with_overrides(notifier_backend=options["backend"])

        contact = options["contact"]
        shop_name = "Test Shop"

        if options["shop_slug"]:
            try:
                shop = Shop.objects.get(slug=options["shop_slug"])
            except Shop.DoesNotExist as exc:
                raise CommandError(f"No shop with slug '{options['shop_slug']}'") from exc
            contact = contact or shop.notification_contact
            shop_name = shop.name

        if not contact:
            raise CommandError("Give a contact id or --shop <slug>.")

        result = NotificationService(config).send_test(contact, shop_name)

        if not result.success:
            raise CommandError(f"Notification failed: {result.error}")

        if result.skipped:
            self.stdout.write(self.style.WARNING(
                f"{config.notifier_backend} notifier is not configured. Nothing was sent."
            ))
            return

        self.stdout.write(self.style.SUCCESS(
            f"Test notification sent to {contact} via {config.notifier_backend} (message id: {result.message_id})"
        ))
