import uuid
from django.db import models
from django.contrib.auth.models import AbstractUser


class UserRole(models.TextChoices):
    MEMBER = 'MEMBER', 'Member'
    SECURITY_GUARD = 'SECURITY_GUARD', 'Security Guard'
    SYSTEM_ADMIN = 'SYSTEM_ADMIN', 'System Administrator'


class UserStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    APPROVED = 'APPROVED', 'Approved'
    REJECTED = 'REJECTED', 'Rejected'


def mint_local_id() -> uuid.UUID:
    """Local primary key for users created from an external identity."""
    return uuid.uuid4()


class User(AbstractUser):
    """
    Community user. Only APPROVED users hold any permissions.
    """
    id = models.UUIDField(primary_key=True, default=mint_local_id, editable=False)
    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.MEMBER
    )
    status = models.CharField(
        max_length=20,
        choices=UserStatus.choices,
        default=UserStatus.PENDING
    )
    phone = models.CharField(max_length=20, blank=True)

    class Meta:
        ordering = ['username']

    def __str__(self):
        return self.email or self.username

    @property
    def display_name(self) -> str:
        return self.get_full_name() or self.username

    @property
    def is_approved(self) -> bool:
        return self.status == UserStatus.APPROVED


class IdentityMapping(models.Model):
    """
    Links an external provider account to a local user.
    Upserted by (provider, provider_id).
    """
    provider = models.CharField(max_length=50)
    provider_id = models.CharField(max_length=255)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='identity_mappings')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ['provider', 'provider_id']

    def __str__(self):
        return f"{self.provider}:{self.provider_id} -> {self.user_id}"
