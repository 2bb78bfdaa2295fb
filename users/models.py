from django.db import models
from django.utils.translation import gettext_lazy as _

from django.contrib.auth.models import (
    AbstractUser,
    BaseUserManager,
)


class UserManager(BaseUserManager):
    """Define a model manager for User model with no username field."""

    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        """Create and save a User with the given email and password."""
        if not email:
            raise ValueError("The given email must be set")
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", User.ADMIN)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self._create_user(email, password, **extra_fields)


class User(AbstractUser):
    """
    Dealership staff account. Login is by email; the role decides which
    side of the ledger the user may touch.
    """
    ADMIN = 'admin'
    PURCHASE = 'purchase'
    SALES = 'sales'

    ROLE_CHOICES = [
        (ADMIN, 'Admin'),
        (PURCHASE, 'Purchase'),
        (SALES, 'Sales'),
    ]

    email = models.EmailField(_("email address"), unique=True)
    username = models.CharField(max_length=30, null=True, blank=True)
    role = models.CharField(max_length=150, choices=ROLE_CHOICES, default=SALES)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    phone_number = models.CharField(max_length=150, null=True, blank=True)
    first_name = models.CharField(max_length=150, null=True, blank=True)
    last_name = models.CharField(max_length=150, null=True, blank=True)

    objects = UserManager()

    class Meta:
        ordering = ['-id']

    def __str__(self):
        return self.email

    @property
    def full_name(self):
        return f"{self.first_name or ''} {self.last_name or ''}".strip() or self.email

    @property
    def is_admin_or_super(self):
        return self.is_superuser or self.role == self.ADMIN

    @property
    def can_record_purchase(self):
        """Purchase staff buy vehicles and pay sellers"""
        return self.is_admin_or_super or self.role == self.PURCHASE

    @property
    def can_record_sale(self):
        """Sales staff sell vehicles and collect from customers"""
        return self.is_admin_or_super or self.role == self.SALES
