from datetime import datetime, timedelta, timezone as dt_timezone

from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from apps.addresses.tests.helpers import make_address, make_user
from apps.core.exceptions import ValidationError
from apps.visitors.access_codes import AccessCodeManager, ExpirationOption, add_calendar_month
from apps.visitors.models import AllowedVisitor

NOW = datetime(2024, 1, 31, 15, 30, tzinfo=dt_timezone.utc)


class ExpirationTest(SimpleTestCase):

    def test_generated_codes_are_six_digits(self):
        for _ in range(50):
            code = AccessCodeManager.generate_code()
            self.assertEqual(len(code), 6)
            self.assertTrue(code.isdigit())
            self.assertNotEqual(code[0], "0")

    def test_presets(self):
        self.assertEqual(
            AccessCodeManager.compute_expiration(ExpirationOption.HOURS_24, now=NOW),
            NOW + timedelta(hours=24),
        )
        self.assertEqual(
            AccessCodeManager.compute_expiration(ExpirationOption.WEEK, now=NOW),
            NOW + timedelta(days=7),
        )

    def test_month_clamps_to_last_day(self):
        expires = AccessCodeManager.compute_expiration(ExpirationOption.MONTH, now=NOW)
        self.assertEqual(expires, datetime(2024, 2, 29, 15, 30, tzinfo=dt_timezone.utc))

    def test_month_rolls_over_year(self):
        value = datetime(2023, 12, 15, tzinfo=dt_timezone.utc)
        self.assertEqual(add_calendar_month(value), datetime(2024, 1, 15, tzinfo=dt_timezone.utc))
        self.assertEqual(
            add_calendar_month(datetime(2023, 1, 31, tzinfo=dt_timezone.utc)),
            datetime(2023, 2, 28, tzinfo=dt_timezone.utc),
        )

    def test_custom_datetime(self):
        expires = AccessCodeManager.compute_expiration(
            ExpirationOption.CUSTOM, "2024-03-01T10:00:00Z", now=NOW
        )
        self.assertEqual(expires, datetime(2024, 3, 1, 10, 0, tzinfo=dt_timezone.utc))

    def test_custom_date_means_midnight_utc(self):
        expires = AccessCodeManager.compute_expiration(ExpirationOption.CUSTOM, "2024-03-01", now=NOW)
        self.assertEqual(expires, datetime(2024, 3, 1, tzinfo=dt_timezone.utc))

    def test_custom_falls_back_to_24_hours(self):
        for value in (None, "", "next tuesday", "2024-13-45"):
            self.assertEqual(
                AccessCodeManager.compute_expiration(ExpirationOption.CUSTOM, value, now=NOW),
                NOW + timedelta(hours=24),
            )

    def test_unknown_option(self):
        with self.assertRaises(ValidationError):
            AccessCodeManager.compute_expiration("2y", now=NOW)


class VerifyCodeTest(TestCase):

    def setUp(self):
        self.member = make_user()
        self.address = make_address(self.member, is_primary=True)
        self.visitor = AllowedVisitor.objects.create(
            address=self.address,
            access_code="482913",
            expires_at=timezone.now() + timedelta(days=1),
        )
        self.manager = AccessCodeManager()

    def test_code_is_reusable_until_expiry(self):
        first = timezone.now()
        second = first + timedelta(hours=2)

        self.assertEqual(self.manager.verify("482913", self.address.id, now=first), self.visitor)
        self.assertEqual(self.manager.verify("482913", self.address.id, now=second), self.visitor)

        self.visitor.refresh_from_db()
        self.assertEqual(self.visitor.last_used, second)

    def test_code_is_scoped_to_address(self):
        other = make_address(make_user(), text="45 Oak Ave, McAllen")
        self.assertIsNone(self.manager.verify("482913", other.id))

    def test_same_code_at_two_addresses(self):
        other = make_address(make_user(), text="45 Oak Ave, McAllen")
        twin = AllowedVisitor.objects.create(
            address=other, access_code="482913", expires_at=timezone.now() + timedelta(days=1),
        )
        self.assertEqual(self.manager.verify("482913", other.id), twin)
        self.assertEqual(self.manager.verify("482913", self.address.id), self.visitor)

    def test_expired_code_is_rejected(self):
        later = timezone.now() + timedelta(days=2)
        self.assertIsNone(self.manager.verify("482913", self.address.id, now=later))

    def test_revoked_code_is_rejected(self):
        self.visitor.is_active = False
        self.visitor.save()
        self.assertIsNone(self.manager.verify("482913", self.address.id))

    def test_blank_code_is_rejected(self):
        self.assertIsNone(self.manager.verify("  ", self.address.id))
