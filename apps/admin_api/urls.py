from django.urls import path

from . import views

urlpatterns = [
    path('users', views.admin_users_list, name='admin-users-list'),
    path('users/<uuid:user_id>', views.admin_user_delete, name='admin-user-delete'),
    path('users/<uuid:user_id>/role', views.admin_user_role, name='admin-user-role'),
    path('trips', views.admin_trips_list, name='admin-trips-list'),
    path('trips/<uuid:trip_id>', views.admin_trip_delete, name='admin-trip-delete'),
]
