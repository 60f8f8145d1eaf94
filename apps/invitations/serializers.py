"""
Serializers for the Invitations app.
"""
from rest_framework import serializers

from apps.invitations.models import TripInvitation
from apps.trips.access import normalize_email
from apps.trips.models import TripParticipant


class InvitationSerializer(serializers.ModelSerializer):
    tripId = serializers.CharField(source='trip_id', read_only=True)
    tripTitle = serializers.CharField(source='trip.title', read_only=True)
    invitedEmail = serializers.EmailField(source='invited_email', read_only=True)
    invitedById = serializers.CharField(source='invited_by_id', read_only=True)
    invitedByName = serializers.CharField(source='invited_by.display_name', read_only=True)
    invitedUserId = serializers.CharField(source='invited_user_id', read_only=True, allow_null=True)
    canEdit = serializers.BooleanField(source='can_edit', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    respondedAt = serializers.DateTimeField(source='responded_at', read_only=True, allow_null=True)

    class Meta:
        model = TripInvitation
        fields = [
            'id', 'tripId', 'tripTitle',
            'invitedEmail', 'invitedById', 'invitedByName', 'invitedUserId',
            'status', 'role', 'canEdit', 'message',
            'createdAt', 'respondedAt',
        ]
        read_only_fields = fields


class InvitationCreateSerializer(serializers.Serializer):
    invitedEmail = serializers.EmailField(max_length=254)
    role = serializers.ChoiceField(choices=TripParticipant.Role.choices, default=TripParticipant.Role.MEMBER)
    canEdit = serializers.BooleanField(default=False)
    message = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)

    def validate_invitedEmail(self, value):
        return normalize_email(value)


class InvitationRespondSerializer(serializers.Serializer):
    """
    Only shape is checked here. Whether the value is an acceptable
    response is decided after the invitation's state, so that a stale
    invitation reports a conflict first.
    """
    status = serializers.ChoiceField(choices=TripInvitation.Status.choices)
