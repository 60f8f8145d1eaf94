"""
URL configuration for the Invitations app.
"""
from django.urls import path

from apps.invitations.views import (
    CancelInvitationView,
    MyInvitationsView,
    RespondToInvitationView,
    TripInvitationsView,
)

app_name = 'invitations'

urlpatterns = [
    path('my/', MyInvitationsView.as_view(), name='my-invitations'),
    path('trip/<uuid:trip_id>/', TripInvitationsView.as_view(), name='trip-invitations'),
    path('<uuid:pk>/respond/', RespondToInvitationView.as_view(), name='invitation-respond'),
    path('<uuid:pk>/', CancelInvitationView.as_view(), name='invitation-cancel'),
]
