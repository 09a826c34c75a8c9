from django.contrib.auth import get_user_model
from django.core import checks
from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone

from campusweb.core.checks import feedback_pagination_configured


class AutoLogoutMiddlewareTests(TestCase):
    def setUp(self):
        self.user = get_user_model().objects.create_user(username="idle", password="SecurePass123")
        self.client.force_login(self.user)

    def expire_session(self):
        session = self.client.session
        session["last_activity_ts"] = timezone.now().timestamp() - 10_000
        session.save()

    @override_settings(AUTO_LOGOUT_TIMEOUT=60)
    def test_idle_api_request_gets_session_expired_envelope(self):
        self.expire_session()

        response = self.client.get("/api/feedback/threads")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "session_expired")
        self.assertNotIn("_auth_user_id", self.client.session)

    @override_settings(AUTO_LOGOUT_TIMEOUT=60)
    def test_idle_page_request_redirects_to_login(self):
        self.expire_session()

        response = self.client.get("/admin/")

        self.assertRedirects(response, "/admin/login/", fetch_redirect_response=False)

    def test_active_session_is_refreshed(self):
        response = self.client.get("/api/feedback/threads")

        self.assertEqual(response.status_code, 200)
        self.assertIn("last_activity_ts", self.client.session)


class PaginationCheckTests(SimpleTestCase):
    @override_settings(FEEDBACK_PAGE_SIZE=0)
    def test_non_positive_page_size_is_an_error(self):
        messages = feedback_pagination_configured(None)

        self.assertEqual([m.id for m in messages], ["campusweb.E001"])
        self.assertEqual(messages[0].level, checks.ERROR)

    @override_settings(FEEDBACK_PAGE_SIZE=200, FEEDBACK_MAX_PAGE_SIZE=100)
    def test_page_size_above_cap_warns(self):
        messages = feedback_pagination_configured(None)

        self.assertEqual([m.id for m in messages], ["campusweb.W001"])

    def test_defaults_pass(self):
        self.assertEqual(feedback_pagination_configured(None), [])
