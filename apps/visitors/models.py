import uuid
from django.db import models
from django.utils import timezone


class AllowedVisitor(models.Model):
    """
    A visitor authorized by a member for one of their addresses.

    Either named (first and last name) or code-only (a six-digit access
    code), never both. Rows with check-in history are deactivated rather
    than deleted.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    address = models.ForeignKey(
        'addresses.MemberAddress',
        on_delete=models.PROTECT,
        related_name='visitors'
    )

    first_name = models.CharField(max_length=100, blank=True)
    last_name = models.CharField(max_length=100, blank=True)
    access_code = models.CharField(max_length=6, blank=True, db_index=True)

    expires_at = models.DateTimeField()
    is_active = models.BooleanField(default=True)
    last_used = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = "Allowed Visitor"
        verbose_name_plural = "Allowed Visitors"

    def __str__(self):
        return self.display_name

    @property
    def display_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or f"Code {self.access_code}"

    @property
    def is_expired(self) -> bool:
        return self.expires_at <= timezone.now()


class EntryMethod(models.TextChoices):
    NAME_VERIFICATION = 'NAME_VERIFICATION', 'Name Verification'
    ACCESS_CODE = 'ACCESS_CODE', 'Access Code'


class VisitorCheckIn(models.Model):
    """
    Append-only record of a visitor passing the gate.

    visitor is empty for walk-ins (names stored inline); address is empty
    when the destination is not registered (text kept in
    unregistered_address).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    visitor = models.ForeignKey(
        AllowedVisitor,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='check_ins'
    )
    address = models.ForeignKey(
        'addresses.MemberAddress',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='check_ins'
    )
    checked_in_by = models.ForeignKey(
        'identity.User',
        on_delete=models.PROTECT,
        related_name='check_ins'
    )
    check_in_time = models.DateTimeField(default=timezone.now, db_index=True)
    entry_method = models.CharField(
        max_length=20,
        choices=EntryMethod.choices,
        default=EntryMethod.NAME_VERIFICATION
    )
    notes = models.TextField(blank=True)

    first_name = models.CharField(max_length=100, blank=True)
    last_name = models.CharField(max_length=100, blank=True)
    unregistered_address = models.CharField(max_length=500, blank=True)

    class Meta:
        ordering = ['-check_in_time']
        verbose_name = "Visitor Check-In"
        verbose_name_plural = "Visitor Check-Ins"

    def __str__(self):
        return f"{self.first_name} {self.last_name} at {self.check_in_time:%Y-%m-%d %H:%M}"
