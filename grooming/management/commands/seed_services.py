"""
seed_services.py
----------------
Seeds (creates or updates) the grooming catalog and day-care options with the
shop's standard packages. You can run this any time; it will upsert by unique
name / type.

Usage:
    python manage.py seed_services
"""

from decimal import Decimal
from django.core.management.base import BaseCommand
from grooming.models import DayCareOption, GroomingService


CATALOG = [
    {
        "name": "Basic Grooming",
        "description": "Bath, brush, nail trim, ear cleaning",
        "duration_minutes": 60,
        "price": Decimal("60.00"),
        "discount": Decimal("8"),
        "features": ["Bath with premium shampoo", "Brushing and detangling", "Nail trimming", "Ear cleaning"],
        "recommended": False,
    },
    {
        "name": "Premium Grooming",
        "description": "Basic + haircut, styling",
        "duration_minutes": 180,
        "price": Decimal("120.00"),
        "discount": Decimal("8"),
        "features": [
            "Everything in Basic Grooming",
            "Professional haircut",
            "Custom styling",
            "Sanitary trim",
            "Paw pad trimming",
        ],
        "recommended": False,
    },
    {
        "name": "Spa Treatment",
        "description": "The ultimate luxurious pet relaxation",
        "duration_minutes": 240,
        "price": Decimal("220.00"),
        "discount": Decimal("10"),
        "features": [
            "Everything in Premium Grooming",
            "Aromatherapy bath",
            "Deep conditioning treatment",
            "Professional massage",
            "Teeth brushing",
            "Blueberry facial",
        ],
        "recommended": True,
    },
]

DAY_CARE = [
    {"type": "daily", "price": Decimal("50.00"), "description": "Daily pet day care service"},
    {"type": "longTerm", "price": Decimal("80.00"), "description": "Long term pet day care service"},
]

SERVICE_FIELDS = ("description", "duration_minutes", "price", "discount", "features", "recommended")


class Command(BaseCommand):
    help = "Seed or update the grooming catalog and day-care options."

    def handle(self, *args, **options):
        created = 0
        updated = 0

        for item in CATALOG:
            svc, is_created = GroomingService.objects.get_or_create(
                name=item["name"],
                defaults={field: item[field] for field in SERVICE_FIELDS},
            )
            if is_created:
                created += 1
                continue
            changed = False
            for field in SERVICE_FIELDS:
                if getattr(svc, field) != item[field]:
                    setattr(svc, field, item[field]); changed = True
            if changed:
                svc.save()
                updated += 1

        for item in DAY_CARE:
            option, is_created = DayCareOption.objects.get_or_create(
                type=item["type"],
                defaults={"price": item["price"], "description": item["description"]},
            )
            if is_created:
                created += 1
            elif option.price != item["price"] or option.description != item["description"]:
                option.price = item["price"]
                option.description = item["description"]
                option.save()
                updated += 1

        self.stdout.write(self.style.SUCCESS(f"Seed complete. Created={created}, Updated={updated}"))
