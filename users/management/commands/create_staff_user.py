from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model

User = get_user_model()


class Command(BaseCommand):
    help = 'Create a dealership staff user'

    def add_arguments(self, parser):
        parser.add_argument('email', type=str, help='Email address for the user')
        parser.add_argument('--role', choices=[r for r, _ in User.ROLE_CHOICES], default=User.SALES)
        parser.add_argument('--password', type=str, default='defaultpassword123', help='Password for the user')
        parser.add_argument('--first-name', type=str, default='', help='First name')
        parser.add_argument('--last-name', type=str, default='', help='Last name')

    def handle(self, *args, **options):
        email = options['email']

        if User.objects.filter(email=email).exists():
            self.stdout.write(
                self.style.ERROR(f'User with email {email} already exists')
            )
            return

        user = User.objects.create_user(
            email=email,
            password=options['password'],
            role=options['role'],
            first_name=options['first_name'],
            last_name=options['last_name'],
        )

        self.stdout.write(
            self.style.SUCCESS(
                f'Successfully created user: {email}\n'
                f'Role: {user.role}'
            )
        )
