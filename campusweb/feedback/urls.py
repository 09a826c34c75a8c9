from django.urls import path
from . import views

urlpatterns = [
    path('threads', views.threads, name='feedback_threads'),
    path('threads/<int:thread_id>', views.thread_detail, name='feedback_thread_detail'),
    path('threads/<int:thread_id>/reply', views.thread_reply, name='feedback_thread_reply'),
    path('threads/<int:thread_id>/status', views.thread_status, name='feedback_thread_status'),
    path('threads/<int:thread_id>/priority', views.thread_priority, name='feedback_thread_priority'),
    path('threads/<int:thread_id>/restore', views.thread_restore, name='feedback_thread_restore'),
    path('migrate-v1', views.migrate_v1, name='feedback_migrate_v1'),
    path('faculty', views.faculty_list, name='feedback_faculty_list'),
]
