from __future__ import annotations

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.inventory.models import Inventory

DEMO_PRODUCTS: list[tuple[int, str, int]] = [
    (1001, "Laptop", 50),
    (1002, "Wireless Mouse", 200),
    (1003, "Mechanical Keyboard", 120),
    (1004, "27in Monitor", 40),
    (1005, "USB-C Hub", 300),
    (1006, "Noise Cancelling Headphones", 75),
    (1007, "Webcam", 90),
    (1008, "External SSD 1TB", 60),
]


class Command(BaseCommand):
    help = "Seed inventory rows (and a demo API user) for local development."

    def add_arguments(self, parser) -> None:
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Overwrite available stock of already seeded products.",
        )

    def handle(self, *args, **options):
        self.stdout.write("Seeding inventory...")
        created = updated = 0
        for product_id, name, stock in DEMO_PRODUCTS:
            inventory, was_created = Inventory.objects.get_or_create(
                product_id=product_id,
                defaults={"product_name": name, "available_stock": stock},
            )
            if was_created:
                created += 1
            elif options["reset"]:
                inventory.product_name = name
                inventory.available_stock = stock
                inventory.save(update_fields=["product_name", "available_stock"])
                updated += 1

        users_created = self._seed_users()

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"products_created={created}, "
                f"products_reset={updated}, "
                f"users={users_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        if not User.objects.filter(username="user").exists():
            User.objects.create_user("user", password="user123")
            created += 1
        return created
