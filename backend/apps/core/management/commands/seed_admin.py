# backend/apps/core/management/commands/seed_admin.py

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from apps.core.models import User


class Command(BaseCommand):
    help = 'Create the default admin account from DEFAULT_ADMIN_EMAIL/DEFAULT_ADMIN_PASSWORD'

    def add_arguments(self, parser):
        parser.add_argument('--email', help='Overrides DEFAULT_ADMIN_EMAIL')
        parser.add_argument('--password', help='Overrides DEFAULT_ADMIN_PASSWORD')

    def handle(self, *args, **options):
        email = (options['email'] or settings.DEFAULT_ADMIN_EMAIL or '').strip().lower()
        password = options['password'] or settings.DEFAULT_ADMIN_PASSWORD

        if not email or not password:
            raise CommandError(
                'DEFAULT_ADMIN_EMAIL and DEFAULT_ADMIN_PASSWORD must be set')

        if User.objects.filter(email=email).exists():
            self.stdout.write(self.style.WARNING(f'Admin {email} already exists'))
            return

        User.objects.create_superuser(
            email=email,
            password=password,
            first_name='Admin',
            last_name='GuraNeza',
            status=User.STATUS_ACTIVE
        )
        self.stdout.write(self.style.SUCCESS(f'Created admin {email}'))
