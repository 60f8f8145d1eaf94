"""
Views for the Invitations app.
"""
from django.db.models import Prefetch
from django.shortcuts import get_object_or_404
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.invitations.models import TripInvitation
from apps.invitations.serializers import (
    InvitationCreateSerializer,
    InvitationRespondSerializer,
    InvitationSerializer,
)
from apps.invitations.services.workflow import (
    cancel_invitation,
    create_invitation,
    ensure_can_respond,
    respond_to_invitation,
)
from apps.trips.access import normalize_email
from apps.trips.models import Trip, TripParticipant
from apps.trips.permissions import CanManageParticipants


def _invitation_queryset():
    return TripInvitation.objects.select_related('trip', 'invited_by')


class MyInvitationsView(generics.ListAPIView):
    """
    Pending invitations addressed to the current user's email.

    GET /api/v1/invitations/my/
    """
    serializer_class = InvitationSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return _invitation_queryset().filter(
            invited_email=normalize_email(self.request.user.email),
            status=TripInvitation.Status.PENDING,
        ).order_by('-created_at')

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({'success': True, 'data': serializer.data})


class TripInvitationsView(APIView):
    """
    GET  /api/v1/invitations/trip/{trip_id}/
    POST /api/v1/invitations/trip/{trip_id}/
    Body: {"invitedEmail": "...", "role": 2, "canEdit": false, "message": "..."}
    """
    permission_classes = [IsAuthenticated, CanManageParticipants]

    def get_trip(self, trip_id):
        trip = get_object_or_404(
            Trip.objects.select_related('created_by').prefetch_related(
                Prefetch('participants', queryset=TripParticipant.objects.select_related('user')),
            ),
            pk=trip_id,
        )
        self.check_object_permissions(self.request, trip)
        return trip

    def get(self, request, trip_id):
        trip = self.get_trip(trip_id)
        invitations = _invitation_queryset().filter(trip=trip).order_by('-created_at')
        serializer = InvitationSerializer(invitations, many=True)
        return Response({'success': True, 'data': serializer.data})

    def post(self, request, trip_id):
        trip = self.get_trip(trip_id)
        serializer = InvitationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        invitation = create_invitation(
            trip,
            request.user,
            data['invitedEmail'],
            role=data['role'],
            can_edit=data['canEdit'],
            message=data.get('message'),
        )
        return Response(
            {
                'success': True,
                'data': InvitationSerializer(invitation).data,
            },
            status=status.HTTP_201_CREATED,
        )


class RespondToInvitationView(APIView):
    """
    Accept or decline an invitation.

    POST /api/v1/invitations/{id}/respond/
    Body: {"status": 1}  (1 = accept, 2 = decline)
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        invitation = get_object_or_404(_invitation_queryset(), pk=pk)
        ensure_can_respond(invitation, request.user)

        serializer = InvitationRespondSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        invitation = respond_to_invitation(invitation, request.user, serializer.validated_data['status'])

        if invitation.status == TripInvitation.Status.ACCEPTED:
            message = f'Invitation accepted. You are now a participant of {invitation.trip.title}.'
        else:
            message = 'Invitation declined.'

        return Response({
            'success': True,
            'data': InvitationSerializer(invitation).data,
            'message': message,
        })


class CancelInvitationView(APIView):
    """
    DELETE /api/v1/invitations/{id}/
    """
    permission_classes = [IsAuthenticated]

    def delete(self, request, pk):
        invitation = get_object_or_404(_invitation_queryset(), pk=pk)
        cancel_invitation(invitation, request.user)
        return Response(
            {'success': True, 'message': 'Invitation cancelled.'},
            status=status.HTTP_200_OK,
        )
