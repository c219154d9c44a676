from django.core.management.base import BaseCommand
from apps.identity.models import User, UserRole, UserStatus


class Command(BaseCommand):
    help = 'Seeds the database with one approved user per role'

    def handle(self, *args, **options):
        users = [
            {'username': 'admin', 'role': UserRole.SYSTEM_ADMIN},
            {'username': 'guard', 'role': UserRole.SECURITY_GUARD},
            {'username': 'member', 'role': UserRole.MEMBER},
        ]

        for u in users:
            user, created = User.objects.get_or_create(username=u['username'])

            user.role = u['role']
            user.status = UserStatus.APPROVED
            user.email = user.email or f"{u['username']}@example.com"
            if u['role'] == UserRole.SYSTEM_ADMIN:
                user.is_staff = True
                user.is_superuser = True

            if created:
                user.set_password('password')
                user.save()
                self.stdout.write(self.style.SUCCESS(f'Created user: {u["username"]} (Role: {u["role"]})'))
            else:
                user.save()
                self.stdout.write(self.style.WARNING(f'Updated user: {u["username"]}'))
