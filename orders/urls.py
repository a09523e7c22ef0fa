from django.urls import path

from . import admin_views, views

urlpatterns = [
    path("token", views.issue_token),
    path("upload", views.upload_files),
    path("orders", views.orders),
    path("orders/<str:order_id>/cancel", views.cancel_order),
    path("orders/<str:order_id>/files/<str:file_name>", views.remove_file),
    path("admin/session", admin_views.session),
    path("admin/orders", admin_views.orders),
    path("admin/orders/<str:order_id>", admin_views.order_detail),
    path("admin/users", admin_views.users),
    path("admin/users/unverified", admin_views.unverified_users),
    path("admin/users/<str:customer_id>/verify", admin_views.verify_user),
    path("admin/stats", admin_views.stats),
]
