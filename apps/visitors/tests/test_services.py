from datetime import date, timedelta

from django.test import TestCase
from django.utils import timezone

from apps.addresses.models import AddressStatus
from apps.addresses.tests.helpers import FakeGeocoder, make_address, make_user
from apps.core.exceptions import NotFoundError, ValidationError
from apps.geocoding.matcher import AddressMatcher
from apps.identity.models import UserRole
from apps.visitors import services
from apps.visitors.dtos import CheckInFilters, CheckInIn, VisitorIn
from apps.visitors.models import AllowedVisitor, EntryMethod, VisitorCheckIn


def tomorrow():
    return timezone.now() + timedelta(days=1)


class CreateVisitorTest(TestCase):

    def setUp(self):
        self.member = make_user()
        self.address = make_address(self.member, is_primary=True)

    def test_named_visitor(self):
        visitor = services.create_visitor(self.member, VisitorIn(
            address_id=self.address.id, first_name=" Jo ", last_name="Guest", expires_at=tomorrow(),
        ))
        self.assertEqual(visitor.first_name, "Jo")
        self.assertEqual(visitor.access_code, "")

    def test_code_only_visitor(self):
        visitor = services.create_visitor(self.member, VisitorIn(
            address_id=self.address.id, generate_code=True, expiration_option="1w",
        ))
        self.assertEqual(len(visitor.access_code), 6)
        self.assertEqual(visitor.first_name, "")
        self.assertGreater(visitor.expires_at, timezone.now() + timedelta(days=6))

    def test_named_and_code_is_rejected(self):
        with self.assertRaises(ValidationError):
            services.create_visitor(self.member, VisitorIn(
                address_id=self.address.id, first_name="Jo", last_name="Guest",
                generate_code=True, expires_at=tomorrow(),
            ))

    def test_named_visitor_needs_both_names(self):
        with self.assertRaises(ValidationError):
            services.create_visitor(self.member, VisitorIn(
                address_id=self.address.id, first_name="Jo", expires_at=tomorrow(),
            ))

    def test_expiry_is_required(self):
        with self.assertRaises(ValidationError):
            services.create_visitor(self.member, VisitorIn(
                address_id=self.address.id, first_name="Jo", last_name="Guest",
            ))

    def test_expiry_must_be_in_future(self):
        with self.assertRaises(ValidationError):
            services.create_visitor(self.member, VisitorIn(
                address_id=self.address.id, first_name="Jo", last_name="Guest",
                expires_at=timezone.now() - timedelta(minutes=1),
            ))

    def test_pending_address_is_rejected(self):
        pending = make_address(self.member, text="45 Oak Ave, McAllen", status=AddressStatus.PENDING)
        with self.assertRaises(ValidationError):
            services.create_visitor(self.member, VisitorIn(
                address_id=pending.id, first_name="Jo", last_name="Guest", expires_at=tomorrow(),
            ))

    def test_foreign_address_is_not_found(self):
        foreign = make_address(make_user(), text="45 Oak Ave, McAllen")
        with self.assertRaises(NotFoundError):
            services.create_visitor(self.member, VisitorIn(
                address_id=foreign.id, first_name="Jo", last_name="Guest", expires_at=tomorrow(),
            ))


class MemberVisitorTest(TestCase):

    def setUp(self):
        self.member = make_user()
        self.guard = make_user(role=UserRole.SECURITY_GUARD)
        self.address = make_address(self.member, is_primary=True)
        self.active = AllowedVisitor.objects.create(
            address=self.address, first_name="Ann", last_name="Active", expires_at=tomorrow(),
        )
        self.expired = AllowedVisitor.objects.create(
            address=self.address, first_name="Ed", last_name="Expired",
            expires_at=timezone.now() - timedelta(hours=1),
        )
        self.revoked = AllowedVisitor.objects.create(
            address=self.address, first_name="Rita", last_name="Revoked",
            expires_at=tomorrow(), is_active=False,
        )
        self.coded = AllowedVisitor.objects.create(
            address=self.address, access_code="135790", expires_at=tomorrow(),
        )

    def test_status_filters(self):
        self.assertEqual(
            set(services.list_visitors(self.member, status="active")), {self.active, self.coded}
        )
        self.assertEqual(services.list_visitors(self.member, status="expired"), [self.expired])
        self.assertEqual(services.list_visitors(self.member, status="inactive"), [self.revoked])
        self.assertEqual(len(services.list_visitors(self.member)), 4)

    def test_search_by_name_or_code(self):
        self.assertEqual(services.list_visitors(self.member, search="rita"), [self.revoked])
        self.assertEqual(services.list_visitors(self.member, search="135790"), [self.coded])

    def test_other_members_see_nothing(self):
        self.assertEqual(services.list_visitors(make_user()), [])

    def test_sort_by_name(self):
        names = [v.last_name for v in services.list_visitors(self.member, sort="name", order="asc")]
        self.assertEqual(names, ["", "Active", "Expired", "Revoked"])

    def test_rename_code_only_visitor_is_rejected(self):
        with self.assertRaises(ValidationError):
            services.update_visitor(self.member, self.coded.id, {"first_name": "Someone"})

    def test_update_extends_expiry(self):
        visitor = services.update_visitor(self.member, self.expired.id, {"expiration_option": "24h"})
        self.assertFalse(visitor.is_expired)

    def test_delete_without_history(self):
        self.assertFalse(services.delete_visitor(self.member, self.active.id))
        self.assertFalse(AllowedVisitor.objects.filter(id=self.active.id).exists())

    def test_delete_with_history_deactivates(self):
        VisitorCheckIn.objects.create(
            visitor=self.active, address=self.address, checked_in_by=self.guard,
            first_name="Ann", last_name="Active",
        )
        self.assertTrue(services.delete_visitor(self.member, self.active.id))
        self.active.refresh_from_db()
        self.assertFalse(self.active.is_active)

    def test_foreign_visitor_is_not_found(self):
        with self.assertRaises(NotFoundError):
            services.inactivate_visitor(make_user(), self.active.id)


class CheckInTest(TestCase):

    def setUp(self):
        self.guard = make_user(role=UserRole.SECURITY_GUARD)
        self.member = make_user()
        self.address = make_address(self.member, is_primary=True)
        self.visitor = AllowedVisitor.objects.create(
            address=self.address, first_name="Jo", last_name="Guest", expires_at=tomorrow(),
        )

    def test_registered_visitor(self):
        check_in = services.check_in_visitor(self.guard, CheckInIn(
            address_id=self.address.id, visitor_id=self.visitor.id,
        ))
        self.assertEqual(check_in.first_name, "Jo")
        self.assertEqual(check_in.checked_in_by, self.guard)
        self.visitor.refresh_from_db()
        self.assertEqual(self.visitor.last_used, check_in.check_in_time)

    def test_visitor_for_another_address(self):
        other = make_address(self.member, text="45 Oak Ave, McAllen")
        with self.assertRaises(ValidationError):
            services.check_in_visitor(self.guard, CheckInIn(
                address_id=other.id, visitor_id=self.visitor.id,
            ))

    def test_expired_visitor(self):
        AllowedVisitor.objects.filter(id=self.visitor.id).update(
            expires_at=timezone.now() - timedelta(minutes=5)
        )
        with self.assertRaises(ValidationError):
            services.check_in_visitor(self.guard, CheckInIn(
                address_id=self.address.id, visitor_id=self.visitor.id,
            ))

    def test_walk_in_to_unregistered_address(self):
        check_in = services.check_in_visitor(self.guard, CheckInIn(
            first_name="Walk", last_name="In", unregistered_address="900 Elm St",
        ))
        self.assertIsNone(check_in.address)
        self.assertIsNone(check_in.visitor)
        self.assertEqual(check_in.unregistered_address, "900 Elm St")

    def test_walk_in_needs_names(self):
        with self.assertRaises(ValidationError):
            services.check_in_visitor(self.guard, CheckInIn(
                address_id=self.address.id, first_name="Walk",
            ))

    def test_destination_is_required(self):
        with self.assertRaises(ValidationError):
            services.check_in_visitor(self.guard, CheckInIn(first_name="Walk", last_name="In"))

    def test_access_code_entry_needs_registered_visitor(self):
        with self.assertRaises(ValidationError):
            services.check_in_visitor(self.guard, CheckInIn(
                address_id=self.address.id, first_name="Walk", last_name="In",
                entry_method=EntryMethod.ACCESS_CODE,
            ))


class GuardLookupTest(TestCase):

    def setUp(self):
        self.member = make_user(phone="9565550100")
        self.address = make_address(self.member, is_primary=True)
        self.matcher = AddressMatcher(FakeGeocoder())

    def test_registered_hit_skips_geocoder(self):
        result = services.lookup_addresses("Main", self.matcher)
        self.assertEqual(result.registered, [self.address])
        self.assertEqual(result.unregistered, [])

    def test_miss_falls_back_to_suggestions(self):
        result = services.lookup_addresses("Oak Ave", self.matcher)
        self.assertEqual(result.registered, [])
        self.assertEqual(len(result.unregistered), 2)

    def test_include_unregistered_on_request(self):
        result = services.lookup_addresses("Main St", self.matcher, include_unregistered=True)
        self.assertEqual(len(result.registered), 1)
        self.assertTrue(result.unregistered)

    def test_empty_query(self):
        with self.assertRaises(ValidationError):
            services.lookup_addresses("  ", self.matcher)

    def test_address_details_list_valid_visitors(self):
        valid = AllowedVisitor.objects.create(
            address=self.address, first_name="Jo", last_name="Guest", expires_at=tomorrow(),
        )
        AllowedVisitor.objects.create(
            address=self.address, first_name="Old", last_name="Guest",
            expires_at=timezone.now() - timedelta(days=1),
        )

        address, visitors = services.get_address_details(self.address.id)

        self.assertEqual(address, self.address)
        self.assertEqual(visitors, [valid])

    def test_pending_address_details_not_found(self):
        pending = make_address(self.member, text="45 Oak Ave", status=AddressStatus.PENDING)
        with self.assertRaises(NotFoundError):
            services.get_address_details(pending.id)


class CheckInLogTest(TestCase):

    def setUp(self):
        self.guard = make_user(role=UserRole.SECURITY_GUARD)
        self.other_guard = make_user(role=UserRole.SECURITY_GUARD)
        self.address = make_address(make_user(), is_primary=True)
        for i in range(5):
            VisitorCheckIn.objects.create(
                address=self.address, checked_in_by=self.guard, first_name=f"V{i}", last_name="X",
            )
        VisitorCheckIn.objects.create(
            address=self.address, checked_in_by=self.other_guard, first_name="Other", last_name="X",
        )

    def test_guard_sees_own_entries(self):
        items, total = services.list_check_ins(self.guard, False, CheckInFilters())
        self.assertEqual(total, 5)
        self.assertTrue(all(c.checked_in_by_id == self.guard.id for c in items))

    def test_guard_filter_ignored_without_view_all(self):
        _, total = services.list_check_ins(
            self.guard, False, CheckInFilters(guard_id=self.other_guard.id)
        )
        self.assertEqual(total, 5)

    def test_view_all_with_guard_filter(self):
        _, total = services.list_check_ins(self.guard, True, CheckInFilters())
        self.assertEqual(total, 6)
        _, total = services.list_check_ins(
            self.guard, True, CheckInFilters(guard_id=self.other_guard.id)
        )
        self.assertEqual(total, 1)

    def test_paging(self):
        items, total = services.list_check_ins(self.guard, True, CheckInFilters(page=2, page_size=4))
        self.assertEqual(total, 6)
        self.assertEqual(len(items), 2)

    def test_date_range(self):
        today = timezone.now().date()
        _, total = services.list_check_ins(
            self.guard, True, CheckInFilters(start_date=today + timedelta(days=1))
        )
        self.assertEqual(total, 0)
        _, total = services.list_check_ins(
            self.guard, True, CheckInFilters(start_date=date(2000, 1, 1), end_date=today)
        )
        self.assertEqual(total, 6)
