"""JSON endpoints for feedback threads."""

from campusweb.core.api import api_view, envelope, parse_json_body

from . import serializers, services


@api_view(["GET", "POST"])
def threads(request):
    """List visible threads, or open a new one."""
    if request.method == "POST":
        thread = services.create_thread(request.user, parse_json_body(request))
        return envelope(
            serializers.thread_summary(thread),
            message="Feedback thread created successfully",
            status=201,
        )

    page = services.list_threads(request.user, request.GET.dict())
    return envelope(
        [serializers.thread_summary(thread) for thread in page.threads],
        stats=page.stats,
        count=len(page.threads),
        total=page.total,
        pages=page.pages,
        currentPage=page.current_page,
    )


@api_view(["GET", "DELETE"])
def thread_detail(request, thread_id):
    if request.method == "DELETE":
        thread = services.soft_delete(request.user, thread_id)
        return envelope(
            serializers.thread_summary(thread),
            message="Thread deleted successfully",
        )

    detail = services.get_thread(request.user, thread_id)
    return envelope(serializers.thread_detail(detail))


@api_view(["POST"])
def thread_reply(request, thread_id):
    result = services.reply(request.user, thread_id, parse_json_body(request))
    return envelope(
        {
            "message": serializers.message(result.message),
            "thread": serializers.thread_summary(result.thread),
        },
        message="Reply added successfully",
        status=201,
    )


@api_view(["PUT"])
def thread_status(request, thread_id):
    payload = parse_json_body(request)
    thread, transition = services.update_status(request.user, thread_id, payload.get("status"))
    message = f"Status updated to {transition.new}" if transition.changed else "Status unchanged"
    return envelope(serializers.thread_summary(thread), message=message)


@api_view(["PUT"])
def thread_priority(request, thread_id):
    payload = parse_json_body(request)
    thread, transition = services.update_priority(request.user, thread_id, payload.get("priority"))
    message = f"Priority updated to {transition.new}" if transition.changed else "Priority unchanged"
    return envelope(serializers.thread_summary(thread), message=message)


@api_view(["POST"])
def thread_restore(request, thread_id):
    thread = services.restore(request.user, thread_id)
    return envelope(serializers.thread_summary(thread), message="Thread restored successfully")


@api_view(["POST"])
def migrate_v1(request):
    """Convert legacy flat feedback into threads (administrators only)."""
    summary = services.run_legacy_migration(request.user)
    return envelope(serializers.migration_summary(summary), message=summary.message)


@api_view(["GET"])
def faculty_list(request):
    faculty = services.list_faculty()
    return envelope(faculty, count=len(faculty))
