from datetime import timedelta

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.test import TestCase, override_settings
from django.utils import timezone

from campusweb.accounts.models import CampusRole
from campusweb.core import errors
from campusweb.core.consumers import user_group_name
from campusweb.feedback import services
from campusweb.feedback.models import FeedbackAudit, FeedbackMessage, FeedbackThread

from .utils import make_user, open_thread


class FeedbackServiceTestCase(TestCase):
    def setUp(self):
        self.student = make_user("student-a")
        self.other_student = make_user("student-b")
        self.faculty = make_user("prof-x", CampusRole.FACULTY, full_name="Dr. X", department="Physics")
        self.other_faculty = make_user("prof-y", CampusRole.FACULTY)
        self.admin = make_user("office-admin", CampusRole.ADMIN)


class CreateThreadTests(FeedbackServiceTestCase):
    def test_student_thread_to_admin_starts_open_with_initial_message(self):
        thread = open_thread(self.student)

        self.assertEqual(thread.status, "open")
        self.assertEqual(thread.type, "general")
        self.assertEqual(thread.priority, "medium")
        self.assertEqual(thread.created_by_role, "student")
        self.assertIsNone(thread.target_user)
        self.assertEqual(thread.message_count, 1)

        messages = list(thread.messages.all())
        self.assertEqual(len(messages), 1)
        self.assertTrue(messages[0].is_initial_message)
        self.assertEqual(messages[0].created_at, thread.last_message_at)
        self.assertFalse(thread.audit_entries.exists())

    def test_student_can_address_a_faculty_member(self):
        thread = open_thread(
            self.student,
            targetRole="faculty",
            targetUserId=self.faculty.pk,
            type="academic",
            priority="high",
        )

        self.assertEqual(thread.target_role, "faculty")
        self.assertEqual(thread.target_user, self.faculty)
        self.assertEqual(thread.type, "academic")
        self.assertEqual(thread.priority, "high")

    def test_faculty_target_requires_target_user(self):
        with self.assertRaises(errors.ValidationError) as ctx:
            open_thread(self.student, targetRole="faculty")

        self.assertIn("targetUserId", ctx.exception.errors)
        self.assertEqual(ctx.exception.message, "Please select a faculty member")
        self.assertFalse(FeedbackThread.objects.exists())

    def test_target_user_must_be_faculty(self):
        with self.assertRaises(errors.ValidationError) as ctx:
            open_thread(self.student, targetRole="faculty", targetUserId=self.other_student.pk)

        self.assertEqual(ctx.exception.message, "Selected faculty member does not exist")

    def test_admin_target_rejects_target_user(self):
        with self.assertRaises(errors.ValidationError) as ctx:
            open_thread(self.student, targetUserId=self.faculty.pk)

        self.assertIn("targetUserId", ctx.exception.errors)

    def test_faculty_can_only_address_admin(self):
        with self.assertRaises(errors.ValidationError) as ctx:
            open_thread(self.faculty, targetRole="faculty", targetUserId=self.other_faculty.pk)

        self.assertEqual(ctx.exception.message, "Faculty can only send feedback to admin")

        thread = open_thread(self.faculty)
        self.assertEqual(thread.created_by_role, "faculty")

    def test_title_and_message_are_required(self):
        with self.assertRaises(errors.ValidationError) as ctx:
            services.create_thread(self.student, {"targetRole": "admin"})

        self.assertEqual(ctx.exception.errors["title"], ["Title is required"])
        self.assertEqual(ctx.exception.errors["message"], ["Message is required"])

    def test_overlong_message_is_rejected(self):
        with self.assertRaises(errors.ValidationError):
            open_thread(self.student, message="x" * 2001)

    def test_unknown_type_is_rejected(self):
        with self.assertRaises(errors.ValidationError) as ctx:
            open_thread(self.student, type="gossip")

        self.assertIn("type", ctx.exception.errors)


class VisibilityTests(FeedbackServiceTestCase):
    def setUp(self):
        super().setUp()
        self.to_admin = open_thread(self.student, title="Library hours")
        self.to_faculty = open_thread(
            self.other_student,
            title="Lab report grading",
            targetRole="faculty",
            targetUserId=self.faculty.pk,
        )
        self.from_faculty = open_thread(self.faculty, title="Projector broken")

    def listed_ids(self, user, **params):
        return {thread.pk for thread in services.list_threads(user, params).threads}

    def test_student_sees_only_own_threads(self):
        self.assertEqual(self.listed_ids(self.student), {self.to_admin.pk})

        with self.assertRaises(errors.NotFound):
            services.get_thread(self.student, self.to_faculty.pk)

    def test_faculty_sees_own_and_targeted_threads(self):
        self.assertEqual(
            self.listed_ids(self.faculty),
            {self.to_faculty.pk, self.from_faculty.pk},
        )
        self.assertEqual(self.listed_ids(self.other_faculty), set())

        with self.assertRaises(errors.NotFound):
            services.get_thread(self.other_faculty, self.to_faculty.pk)

    def test_admin_sees_everything(self):
        self.assertEqual(
            self.listed_ids(self.admin),
            {self.to_admin.pk, self.to_faculty.pk, self.from_faculty.pk},
        )

    def test_unknown_and_foreign_ids_are_indistinguishable(self):
        with self.assertRaises(errors.NotFound) as unknown:
            services.get_thread(self.student, 999999)
        with self.assertRaises(errors.NotFound) as foreign:
            services.get_thread(self.student, self.to_faculty.pk)

        self.assertEqual(unknown.exception.message, foreign.exception.message)

    def test_deleted_threads_hidden_unless_admin_asks(self):
        services.soft_delete(self.admin, self.to_admin.pk)

        self.assertEqual(self.listed_ids(self.student), set())
        self.assertEqual(self.listed_ids(self.student, includeDeleted="true"), set())
        self.assertNotIn(self.to_admin.pk, self.listed_ids(self.admin))
        self.assertIn(self.to_admin.pk, self.listed_ids(self.admin, includeDeleted="true"))

        with self.assertRaises(errors.NotFound):
            services.get_thread(self.student, self.to_admin.pk)
        detail = services.get_thread(self.admin, self.to_admin.pk)
        self.assertTrue(detail.thread.is_deleted)

    def test_status_counts_respect_scope_and_soft_delete(self):
        services.update_status(self.admin, self.to_faculty.pk, "resolved")
        services.soft_delete(self.admin, self.from_faculty.pk)

        admin_counts = services.status_counts(self.admin)
        self.assertEqual(
            admin_counts,
            {"open": 1, "in_review": 0, "waiting_for_user": 0, "resolved": 1, "closed": 0},
        )
        self.assertEqual(services.status_counts(self.student)["open"], 1)
        self.assertEqual(sum(services.status_counts(self.other_faculty).values()), 0)

    def test_filters_and_search(self):
        services.update_priority(self.admin, self.to_admin.pk, "high")

        self.assertEqual(self.listed_ids(self.admin, priority="high"), {self.to_admin.pk})
        self.assertEqual(self.listed_ids(self.admin, createdByRole="faculty"), {self.from_faculty.pk})
        self.assertEqual(self.listed_ids(self.admin, search="REPORT"), {self.to_faculty.pk})

    def test_invalid_filter_value_is_rejected(self):
        with self.assertRaises(errors.ValidationError):
            services.list_threads(self.admin, {"status": "archived"})


class PaginationTests(FeedbackServiceTestCase):
    def setUp(self):
        super().setUp()
        base = timezone.now() - timedelta(hours=3)
        self.threads = []
        for index in range(3):
            thread = open_thread(self.student, title=f"Issue {index}")
            FeedbackThread.objects.filter(pk=thread.pk).update(last_message_at=base + timedelta(hours=index))
            self.threads.append(thread)

    def test_pages_and_ordering(self):
        first = services.list_threads(self.student, {"limit": "2"})
        second = services.list_threads(self.student, {"limit": "2", "page": "2"})

        self.assertEqual(first.total, 3)
        self.assertEqual(first.pages, 2)
        self.assertEqual(first.current_page, 1)
        self.assertEqual([t.title for t in first.threads], ["Issue 2", "Issue 1"])
        self.assertEqual([t.title for t in second.threads], ["Issue 0"])
        self.assertEqual(second.current_page, 2)

    def test_reply_moves_thread_to_the_top(self):
        services.reply(self.student, self.threads[0].pk, {"message": "Any update?"})

        page = services.list_threads(self.student)
        self.assertEqual(page.threads[0].pk, self.threads[0].pk)

    @override_settings(FEEDBACK_MAX_PAGE_SIZE=2)
    def test_limit_is_capped(self):
        page = services.list_threads(self.student, {"limit": "50"})

        self.assertEqual(len(page.threads), 2)
        self.assertEqual(page.pages, 2)

    def test_page_past_the_end_is_empty(self):
        page = services.list_threads(self.student, {"page": "5"})

        self.assertEqual(page.threads, [])
        self.assertEqual(page.total, 3)


class StatusAndPriorityTests(FeedbackServiceTestCase):
    def setUp(self):
        super().setUp()
        self.thread = open_thread(self.student)

    def test_admin_status_change_is_audited(self):
        thread, transition = services.update_status(self.admin, self.thread.pk, "in_review")

        self.assertTrue(transition.changed)
        self.assertEqual(thread.status, "in_review")
        entry = FeedbackAudit.objects.get(thread=self.thread)
        self.assertEqual(entry.action, FeedbackAudit.Action.STATUS_CHANGED)
        self.assertEqual(entry.previous_value, "open")
        self.assertEqual(entry.new_value, "in_review")
        self.assertEqual(entry.performed_by, self.admin)
        self.assertEqual(entry.performed_by_role, "admin")

    def test_audit_previous_value_matches_prior_state(self):
        for status in ("in_review", "resolved", "open", "closed"):
            services.update_status(self.admin, self.thread.pk, status)

        entries = list(FeedbackAudit.objects.filter(thread=self.thread))
        self.assertEqual(
            [(e.previous_value, e.new_value) for e in entries],
            [("open", "in_review"), ("in_review", "resolved"), ("resolved", "open"), ("open", "closed")],
        )

    def test_setting_the_current_value_is_a_noop(self):
        thread, transition = services.update_status(self.admin, self.thread.pk, "open")

        self.assertFalse(transition.changed)
        self.assertEqual(thread.status, "open")
        self.assertFalse(FeedbackAudit.objects.exists())

    def test_invalid_status_lists_allowed_values(self):
        with self.assertRaises(errors.ValidationError) as ctx:
            services.update_status(self.admin, self.thread.pk, "archived")

        self.assertEqual(
            ctx.exception.message,
            "Invalid status. Must be one of: open, in_review, waiting_for_user, resolved, closed",
        )
        self.thread.refresh_from_db()
        self.assertEqual(self.thread.status, "open")

    def test_non_admins_cannot_change_status_or_priority(self):
        for user in (self.student, self.faculty):
            with self.assertRaises(errors.PermissionDenied):
                services.update_status(user, self.thread.pk, "closed")
            with self.assertRaises(errors.PermissionDenied):
                services.update_priority(user, self.thread.pk, "high")

        self.thread.refresh_from_db()
        self.assertEqual(self.thread.status, "open")
        self.assertEqual(self.thread.priority, "medium")

    def test_unknown_thread_is_not_found_for_admin(self):
        with self.assertRaises(errors.NotFound):
            services.update_status(self.admin, 999999, "closed")

    def test_priority_change_is_audited(self):
        services.update_priority(self.admin, self.thread.pk, "high")

        entry = FeedbackAudit.objects.get(thread=self.thread)
        self.assertEqual(entry.action, FeedbackAudit.Action.PRIORITY_CHANGED)
        self.assertEqual((entry.previous_value, entry.new_value), ("medium", "high"))

        with self.assertRaises(errors.ValidationError):
            services.update_priority(self.admin, self.thread.pk, "urgent")


class ReplyTests(FeedbackServiceTestCase):
    def setUp(self):
        super().setUp()
        self.thread = open_thread(self.student)

    def test_reply_updates_counters(self):
        before = self.thread.last_message_at

        result = services.reply(self.admin, self.thread.pk, {"message": "Looking into it."})

        self.thread.refresh_from_db()
        self.assertEqual(self.thread.message_count, 2)
        self.assertEqual(self.thread.messages.count(), 2)
        self.assertEqual(self.thread.last_message_at, result.message.created_at)
        self.assertGreaterEqual(self.thread.last_message_at, before)
        self.assertEqual(result.message.sender_role, "admin")
        self.assertIsNone(result.status_transition)

    def test_outsiders_cannot_reply(self):
        with self.assertRaises(errors.NotFound):
            services.reply(self.other_student, self.thread.pk, {"message": "Me too"})
        with self.assertRaises(errors.NotFound):
            services.reply(self.faculty, self.thread.pk, {"message": "Hello"})

        self.assertEqual(FeedbackMessage.objects.count(), 1)

    def test_empty_reply_is_rejected(self):
        with self.assertRaises(errors.ValidationError):
            services.reply(self.student, self.thread.pk, {"message": ""})

    def test_reply_to_deleted_thread(self):
        services.soft_delete(self.admin, self.thread.pk)

        with self.assertRaises(errors.NotFound):
            services.reply(self.student, self.thread.pk, {"message": "Hello?"})
        with self.assertRaises(errors.Conflict):
            services.reply(self.admin, self.thread.pk, {"message": "Hello?"})

    def test_reply_to_closed_thread_allowed_by_default(self):
        services.update_status(self.admin, self.thread.pk, "closed")

        services.reply(self.student, self.thread.pk, {"message": "Still broken."})

        self.thread.refresh_from_db()
        self.assertEqual(self.thread.message_count, 2)
        self.assertEqual(self.thread.status, "closed")

    @override_settings(FEEDBACK_ALLOW_REPLY_ON_CLOSED=False)
    def test_reply_to_closed_thread_can_be_disabled(self):
        services.update_status(self.admin, self.thread.pk, "resolved")

        with self.assertRaises(errors.Conflict):
            services.reply(self.student, self.thread.pk, {"message": "Still broken."})

    def test_participant_reply_puts_waiting_thread_back_in_review(self):
        services.update_status(self.admin, self.thread.pk, "waiting_for_user")

        result = services.reply(self.student, self.thread.pk, {"message": "It is Block C, room 12."})

        self.assertEqual(result.thread.status, "in_review")
        self.assertEqual(result.status_transition.previous, "waiting_for_user")
        entry = FeedbackAudit.objects.filter(thread=self.thread).last()
        self.assertEqual(entry.performed_by, self.student)
        self.assertEqual((entry.previous_value, entry.new_value), ("waiting_for_user", "in_review"))
        self.assertEqual(entry.metadata["trigger"], "reply")
        self.assertEqual(entry.metadata["messageId"], result.message.pk)

    def test_admin_reply_keeps_waiting_status(self):
        services.update_status(self.admin, self.thread.pk, "waiting_for_user")

        result = services.reply(self.admin, self.thread.pk, {"message": "Please confirm the room."})

        self.assertEqual(result.thread.status, "waiting_for_user")

    def test_reply_notifies_other_participants(self):
        layer = get_channel_layer()
        channel = async_to_sync(layer.new_channel)()
        async_to_sync(layer.group_add)(user_group_name(self.student.pk), channel)

        with self.captureOnCommitCallbacks(execute=True):
            services.reply(self.admin, self.thread.pk, {"message": "Technician assigned."})

        event = async_to_sync(layer.receive)(channel)
        self.assertEqual(event["type"], "notify")
        self.assertEqual(event["data"]["threadId"], self.thread.pk)
        async_to_sync(layer.flush)()


class SoftDeleteTests(FeedbackServiceTestCase):
    def setUp(self):
        super().setUp()
        self.thread = open_thread(self.student)

    def test_soft_delete_and_restore_are_audited(self):
        deleted = services.soft_delete(self.admin, self.thread.pk)
        self.assertTrue(deleted.is_deleted)
        self.assertEqual(deleted.deleted_by, self.admin)
        self.assertIsNotNone(deleted.deleted_at)

        restored = services.restore(self.admin, self.thread.pk)
        self.assertFalse(restored.is_deleted)
        self.assertIsNone(restored.deleted_at)

        entries = list(FeedbackAudit.objects.filter(thread=self.thread))
        self.assertEqual(
            [(e.action, e.previous_value, e.new_value) for e in entries],
            [
                (FeedbackAudit.Action.SOFT_DELETED, "active", "deleted"),
                (FeedbackAudit.Action.RESTORED, "deleted", "active"),
            ],
        )
        self.assertTrue(FeedbackThread.objects.filter(pk=self.thread.pk).exists())

    def test_second_delete_conflicts(self):
        services.soft_delete(self.admin, self.thread.pk)

        with self.assertRaises(errors.Conflict):
            services.soft_delete(self.admin, self.thread.pk)
        self.assertEqual(FeedbackAudit.objects.count(), 1)

    def test_restore_requires_deleted_thread(self):
        with self.assertRaises(errors.Conflict):
            services.restore(self.admin, self.thread.pk)

    def test_only_admins_delete(self):
        with self.assertRaises(errors.PermissionDenied):
            services.soft_delete(self.student, self.thread.pk)

        self.thread.refresh_from_db()
        self.assertFalse(self.thread.is_deleted)


class WifiOutageScenarioTests(FeedbackServiceTestCase):
    def test_full_conversation(self):
        thread = open_thread(self.student, type="technical", priority="high")

        page = services.list_threads(self.admin)
        self.assertEqual([t.pk for t in page.threads], [thread.pk])
        self.assertEqual(page.stats["open"], 1)

        services.update_status(self.admin, thread.pk, "in_review")
        services.reply(self.admin, thread.pk, {"message": "Which floor?"})
        services.update_status(self.admin, thread.pk, "waiting_for_user")
        services.reply(self.student, thread.pk, {"message": "Second floor."})
        services.update_status(self.admin, thread.pk, "resolved")

        detail = services.get_thread(self.student, thread.pk)
        self.assertEqual(detail.thread.status, "resolved")
        self.assertEqual(detail.thread.message_count, 3)
        self.assertEqual(
            [m.message for m in detail.messages],
            ["No connection since morning.", "Which floor?", "Second floor."],
        )
        self.assertEqual(
            [(e.previous_value, e.new_value) for e in detail.audit_entries],
            [
                ("open", "in_review"),
                ("in_review", "waiting_for_user"),
                ("waiting_for_user", "in_review"),
                ("in_review", "resolved"),
            ],
        )
        self.assertFalse(detail.thread.is_active)


class FacultyListTests(FeedbackServiceTestCase):
    def test_lists_active_faculty_only(self):
        self.other_faculty.is_active = False
        self.other_faculty.save()

        faculty = services.list_faculty()

        self.assertEqual(
            faculty,
            [
                {
                    "id": self.faculty.pk,
                    "name": "Dr. X",
                    "username": "prof-x",
                    "department": "Physics",
                    "designation": "",
                }
            ],
        )


class FacultyReplyScenarioTests(FeedbackServiceTestCase):
    def test_faculty_reply_then_resolution(self):
        thread = open_thread(
            self.student,
            title="Wi-Fi drops during lab",
            targetRole="faculty",
            targetUserId=self.faculty.pk,
        )
        self.assertEqual((thread.status, thread.message_count), ("open", 1))

        services.reply(self.faculty, thread.pk, {"message": "Reported to IT."})
        thread.refresh_from_db()
        self.assertEqual(thread.message_count, 2)

        services.update_status(self.admin, thread.pk, "resolved")

        entries = list(FeedbackAudit.objects.filter(thread=thread))
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].action, FeedbackAudit.Action.STATUS_CHANGED)
        self.assertEqual((entries[0].previous_value, entries[0].new_value), ("open", "resolved"))
