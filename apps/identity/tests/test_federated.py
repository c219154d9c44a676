from unittest import mock

from django.db import IntegrityError
from django.test import TestCase

from apps.identity import services
from apps.identity.models import IdentityMapping, User, UserRole, UserStatus
from apps.identity.services import sync_federated_user


class SyncFederatedUserTest(TestCase):

    def test_existing_mapping_is_reused(self):
        user = User.objects.create_user(username="mapped", email="mapped@test.com", status=UserStatus.APPROVED)
        IdentityMapping.objects.create(provider="google", provider_id="g-1", user=user)

        with self.assertLogs("apps.core.strategies", level="INFO") as logs:
            resolved = sync_federated_user("google", "g-1", email="other@test.com")

        self.assertEqual(resolved, user)
        self.assertIn("Strategy 'existing mapping' succeeded", "\n".join(logs.output))
        self.assertEqual(User.objects.count(), 1)

    def test_matching_email_links_existing_account(self):
        user = User.objects.create_user(username="local", email="Jane@Test.com", status=UserStatus.APPROVED)

        resolved = sync_federated_user("google", "g-2", email="jane@test.com", name="Jane Doe")

        self.assertEqual(resolved, user)
        mapping = IdentityMapping.objects.get(provider="google", provider_id="g-2")
        self.assertEqual(mapping.user, user)

    def test_unknown_identity_creates_approved_member(self):
        resolved = sync_federated_user("google", "g-3", email="new@test.com", name="New Person")

        self.assertEqual(resolved.role, UserRole.MEMBER)
        self.assertEqual(resolved.status, UserStatus.APPROVED)
        self.assertEqual(resolved.first_name, "New")
        self.assertEqual(resolved.last_name, "Person")
        self.assertFalse(resolved.has_usable_password())
        self.assertTrue(
            IdentityMapping.objects.filter(provider="google", provider_id="g-3", user=resolved).exists()
        )

    def test_second_sync_does_not_duplicate(self):
        first = sync_federated_user("google", "g-4", email="repeat@test.com")
        second = sync_federated_user("google", "g-4", email="repeat@test.com")

        self.assertEqual(first, second)
        self.assertEqual(User.objects.filter(email="repeat@test.com").count(), 1)

    def test_pending_profile_is_auto_approved(self):
        user = User.objects.create_user(username="waiting", email="waiting@test.com")
        self.assertEqual(user.status, UserStatus.PENDING)

        resolved = sync_federated_user("google", "g-5", email="waiting@test.com")

        resolved.refresh_from_db()
        self.assertEqual(resolved.status, UserStatus.APPROVED)

    def test_concurrent_creation_falls_back_to_mapping(self):
        winner = User.objects.create_user(username="winner", email="", status=UserStatus.APPROVED)
        calls = {"count": 0}

        def racing_lookup(identity):
            calls["count"] += 1
            if calls["count"] == 1:
                return None
            return winner

        with mock.patch.object(services, "_find_by_mapping", side_effect=racing_lookup), \
                mock.patch.object(services, "_create_profile", side_effect=IntegrityError("duplicate")):
            resolved = sync_federated_user("google", "g-6")

        self.assertEqual(resolved, winner)
