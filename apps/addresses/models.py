import uuid
from django.db import models


class AddressStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    APPROVED = 'APPROVED', 'Approved'
    REJECTED = 'REJECTED', 'Rejected'


class VerificationStatus(models.TextChoices):
    UNVERIFIED = 'UNVERIFIED', 'Unverified'
    VERIFIED = 'VERIFIED', 'Verified'
    INVALID = 'INVALID', 'Invalid'
    NEEDS_REVIEW = 'NEEDS_REVIEW', 'Needs Review'


class MemberAddress(models.Model):
    """
    An address registered by a member. Visitors are authorized against it.

    is_active=False is a soft delete, used when visitors or check-ins still
    reference the row.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    member = models.ForeignKey('identity.User', on_delete=models.CASCADE, related_name='addresses')

    address = models.CharField(max_length=500)
    apartment_number = models.CharField(max_length=50, blank=True)
    owner_name = models.CharField(max_length=255)

    status = models.CharField(
        max_length=20,
        choices=AddressStatus.choices,
        default=AddressStatus.PENDING
    )
    is_primary = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    # Verification (independent of approval status)
    verification_status = models.CharField(
        max_length=20,
        choices=VerificationStatus.choices,
        default=VerificationStatus.UNVERIFIED
    )
    verification_notes = models.TextField(blank=True)
    verification_date = models.DateTimeField(null=True, blank=True)
    verified_by = models.ForeignKey(
        'identity.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='verified_addresses'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-is_primary', '-created_at']
        verbose_name = "Member Address"
        verbose_name_plural = "Member Addresses"

    def __str__(self):
        return self.full_label

    @property
    def full_label(self) -> str:
        if self.apartment_number:
            return f"{self.address} Apt {self.apartment_number}"
        return self.address
