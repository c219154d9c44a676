import json

from django.test import TestCase, Client

from apps.identity.models import User, UserRole, UserStatus


class AuthFlowTest(TestCase):

    def setUp(self):
        self.client = Client()
        self.user = User.objects.create_user(
            username="member", email="member@test.com", password="testpass123",
            role=UserRole.MEMBER, status=UserStatus.APPROVED,
        )

    def login(self, username="member", password="testpass123"):
        return self.client.post(
            "/api/identity/login",
            data=json.dumps({"username": username, "password": password}),
            content_type="application/json",
        )

    def test_login_sets_cookies(self):
        response = self.login()
        self.assertEqual(response.status_code, 200)
        self.assertIn("access_token", response.cookies)
        self.assertIn("refresh_token", response.cookies)
        self.assertEqual(response.json()["user"]["username"], "member")

    def test_login_rejects_bad_password(self):
        response = self.login(password="wrong")
        self.assertEqual(response.status_code, 401)

    def test_rejected_account_cannot_login(self):
        self.user.status = UserStatus.REJECTED
        self.user.save()
        response = self.login()
        self.assertEqual(response.status_code, 403)

    def test_me_with_cookie(self):
        self.login()
        response = self.client.get("/api/identity/me")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["role"], UserRole.MEMBER)

    def test_me_requires_auth(self):
        response = self.client.get("/api/identity/me")
        self.assertEqual(response.status_code, 401)

    def test_refresh_issues_new_access_token(self):
        self.login()
        response = self.client.post("/api/identity/refresh")
        self.assertEqual(response.status_code, 200)
        self.assertIn("access_token", response.cookies)

    def test_refresh_without_cookie(self):
        response = self.client.post("/api/identity/refresh")
        self.assertEqual(response.status_code, 401)

    def test_register_creates_pending_member(self):
        response = self.client.post(
            "/api/identity/register",
            data=json.dumps({
                "username": "newbie",
                "email": "newbie@test.com",
                "password": "testpass123",
                "first_name": "New",
                "last_name": "Bie",
            }),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["status"], UserStatus.PENDING)
        self.assertEqual(response.json()["permissions"], [])


class UserManagementTest(TestCase):

    def setUp(self):
        self.client = Client()
        self.admin = User.objects.create_user(
            username="admin", password="pw", role=UserRole.SYSTEM_ADMIN, status=UserStatus.APPROVED,
        )
        self.pending = User.objects.create_user(username="pending", password="pw", role=UserRole.MEMBER)

    def test_admin_lists_pending_users(self):
        self.client.force_login(self.admin)
        response = self.client.get("/api/identity/users?status=PENDING")
        self.assertEqual(response.status_code, 200)
        self.assertEqual([u["username"] for u in response.json()], ["pending"])

    def test_admin_approves_user(self):
        self.client.force_login(self.admin)
        response = self.client.post(
            f"/api/identity/users/{self.pending.id}/status",
            data=json.dumps({"status": "APPROVED"}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 200)
        self.pending.refresh_from_db()
        self.assertEqual(self.pending.status, UserStatus.APPROVED)

    def test_status_must_be_a_decision(self):
        self.client.force_login(self.admin)
        response = self.client.post(
            f"/api/identity/users/{self.pending.id}/status",
            data=json.dumps({"status": "PENDING"}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 400)

    def test_member_cannot_manage_users(self):
        member = User.objects.create_user(
            username="m", password="pw", role=UserRole.MEMBER, status=UserStatus.APPROVED,
        )
        self.client.force_login(member)
        response = self.client.get("/api/identity/users")
        self.assertEqual(response.status_code, 403)
