"""
URL configuration for the Trips app.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from apps.trips.views import TripViewSet, WaypointViewSet

app_name = 'trips'

router = DefaultRouter()
router.register(r'trips', TripViewSet, basename='trip')

# Nested routes for waypoints
waypoint_list = WaypointViewSet.as_view({
    'get': 'list',
    'post': 'create',
})
waypoint_detail = WaypointViewSet.as_view({
    'get': 'retrieve',
    'patch': 'partial_update',
    'put': 'update',
    'delete': 'destroy',
})
waypoint_reorder = WaypointViewSet.as_view({
    'post': 'reorder',
})

urlpatterns = [
    path('', include(router.urls)),
    path(
        'trips/<uuid:trip_pk>/waypoints/',
        waypoint_list,
        name='trip-waypoint-list',
    ),
    path(
        'trips/<uuid:trip_pk>/waypoints/reorder/',
        waypoint_reorder,
        name='trip-waypoint-reorder',
    ),
    path(
        'trips/<uuid:trip_pk>/waypoints/<uuid:pk>/',
        waypoint_detail,
        name='trip-waypoint-detail',
    ),
]
