# backend/apps/orders/management/commands/seed_shipping.py

from decimal import Decimal

from django.core.management.base import BaseCommand
from apps.orders.models import ShippingSetting


DEFAULT_RATES = [
    {'city': 'Kigali', 'fee': Decimal('2000'), 'is_default': True},
    {'city': 'Huye', 'fee': Decimal('5000'), 'is_default': False},
    {'city': 'Musanze', 'fee': Decimal('5000'), 'is_default': False},
    {'city': 'Rubavu', 'fee': Decimal('6000'), 'is_default': False},
    {'city': 'Rusizi', 'fee': Decimal('7000'), 'is_default': False},
]


class Command(BaseCommand):
    help = 'Seed the default shipping rates per city'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Delete existing shipping rates before seeding',
        )

    def handle(self, *args, **options):
        if options['clear']:
            ShippingSetting.objects.all().delete()
            self.stdout.write(self.style.WARNING('Cleared existing shipping rates'))

        created = 0
        for rate in DEFAULT_RATES:
            if ShippingSetting.objects.filter(city__iexact=rate['city']).exists():
                continue
            ShippingSetting.objects.create(**rate)
            created += 1

        self.stdout.write(self.style.SUCCESS(
            f'Seeded {created} shipping rates'))
