"""
Serializers for the Trips app.
All output uses camelCase to match the web client; enumerations travel as
integers.
"""
from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import serializers

from apps.trips.access import TripAccess, normalize_email
from apps.trips.models import Trip, TripParticipant, Waypoint

User = get_user_model()


# ---------------------------------------------------------------------------
# Participants
# ---------------------------------------------------------------------------

class TripParticipantSerializer(serializers.ModelSerializer):
    tripId = serializers.CharField(source='trip_id', read_only=True)
    userId = serializers.CharField(source='user_id', read_only=True)
    userEmail = serializers.EmailField(source='user.email', read_only=True)
    userName = serializers.CharField(source='user.display_name', read_only=True)
    canEdit = serializers.BooleanField(source='can_edit', read_only=True)
    joinedAt = serializers.DateTimeField(source='joined_at', read_only=True)

    class Meta:
        model = TripParticipant
        fields = ['id', 'tripId', 'userId', 'userEmail', 'userName', 'role', 'canEdit', 'joinedAt']
        read_only_fields = fields


class ParticipantCreateSerializer(serializers.Serializer):
    """Adds a registered user to a trip directly, by email."""
    userEmail = serializers.EmailField()
    role = serializers.ChoiceField(choices=TripParticipant.Role.choices, default=TripParticipant.Role.MEMBER)
    canEdit = serializers.BooleanField(default=False)

    def validate_userEmail(self, value):
        email = normalize_email(value)
        try:
            self.user = User.objects.get(email=email)
        except User.DoesNotExist:
            raise serializers.ValidationError('No user found with this email address.')
        return email


class ParticipantUpdateSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=TripParticipant.Role.choices, required=False)
    canEdit = serializers.BooleanField(required=False)

    def update(self, instance, validated_data):
        if 'role' in validated_data:
            instance.role = validated_data['role']
        if 'canEdit' in validated_data:
            instance.can_edit = validated_data['canEdit']
        instance.save(update_fields=['role', 'can_edit', 'updated_at'])
        return instance


# ---------------------------------------------------------------------------
# Waypoints
# ---------------------------------------------------------------------------

class WaypointSerializer(serializers.ModelSerializer):
    tripId = serializers.CharField(source='trip_id', read_only=True)
    orderIndex = serializers.IntegerField(source='order_index', read_only=True)
    plannedArrival = serializers.DateTimeField(source='planned_arrival', read_only=True)
    plannedDeparture = serializers.DateTimeField(source='planned_departure', read_only=True)
    actualArrival = serializers.DateTimeField(source='actual_arrival', read_only=True)
    actualDeparture = serializers.DateTimeField(source='actual_departure', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Waypoint
        fields = [
            'id', 'tripId', 'name', 'description',
            'latitude', 'longitude', 'type', 'address', 'orderIndex',
            'plannedArrival', 'plannedDeparture',
            'actualArrival', 'actualDeparture',
            'notes', 'createdAt',
        ]
        read_only_fields = fields


class WaypointWriteSerializer(serializers.Serializer):
    """
    Accepts camelCase input for creating (full) or updating (partial) a
    waypoint. Actual timestamps can only be recorded on update.
    """
    FIELD_MAP = {
        'name': 'name',
        'description': 'description',
        'latitude': 'latitude',
        'longitude': 'longitude',
        'type': 'type',
        'address': 'address',
        'orderIndex': 'order_index',
        'plannedArrival': 'planned_arrival',
        'plannedDeparture': 'planned_departure',
        'actualArrival': 'actual_arrival',
        'actualDeparture': 'actual_departure',
        'notes': 'notes',
    }

    name = serializers.CharField(max_length=200)
    description = serializers.CharField(max_length=1000, required=False, allow_blank=True)
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    type = serializers.ChoiceField(choices=Waypoint.Type.choices, required=False)
    address = serializers.CharField(max_length=500, required=False, allow_blank=True)
    orderIndex = serializers.IntegerField(required=False)
    plannedArrival = serializers.DateTimeField(required=False, allow_null=True)
    plannedDeparture = serializers.DateTimeField(required=False, allow_null=True)
    actualArrival = serializers.DateTimeField(required=False, allow_null=True)
    actualDeparture = serializers.DateTimeField(required=False, allow_null=True)
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True)

    def validate(self, attrs):
        if self.instance is None:
            attrs.pop('actualArrival', None)
            attrs.pop('actualDeparture', None)
        return attrs

    def _model_fields(self, validated_data):
        return {self.FIELD_MAP[key]: value for key, value in validated_data.items()}

    def create(self, validated_data):
        return Waypoint.objects.create(
            trip=self.context['trip'],
            **self._model_fields(validated_data),
        )

    def update(self, instance, validated_data):
        for field, value in self._model_fields(validated_data).items():
            setattr(instance, field, value)
        instance.save()
        return instance


class WaypointReorderSerializer(serializers.Serializer):
    waypointIds = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)

    def validate_waypointIds(self, value):
        trip = self.context['trip']
        existing_ids = set(
            Waypoint.objects.filter(trip=trip).values_list('id', flat=True)
        )
        if len(value) != len(set(value)) or existing_ids != set(value):
            raise serializers.ValidationError('Provided waypoint IDs do not match existing waypoints for this trip.')
        return value


# ---------------------------------------------------------------------------
# Trips
# ---------------------------------------------------------------------------

class TripSummarySerializer(serializers.ModelSerializer):
    startDate = serializers.DateField(source='start_date', read_only=True)
    endDate = serializers.DateField(source='end_date', read_only=True)
    isPublic = serializers.BooleanField(source='is_public', read_only=True)
    createdBy = serializers.CharField(source='created_by_id', read_only=True)
    createdByName = serializers.CharField(source='created_by.display_name', read_only=True)
    participantCount = serializers.SerializerMethodField()
    waypointCount = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Trip
        fields = [
            'id', 'title', 'description',
            'startDate', 'endDate', 'status', 'isPublic',
            'createdBy', 'createdByName',
            'participantCount', 'waypointCount', 'createdAt',
        ]
        read_only_fields = fields

    def get_participantCount(self, obj):
        return len(obj.participants.all())

    def get_waypointCount(self, obj):
        return len(obj.waypoints.all())


class TripSerializer(serializers.ModelSerializer):
    startDate = serializers.DateField(source='start_date', read_only=True)
    endDate = serializers.DateField(source='end_date', read_only=True)
    isPublic = serializers.BooleanField(source='is_public', read_only=True)
    createdBy = serializers.CharField(source='created_by_id', read_only=True)
    createdByName = serializers.CharField(source='created_by.display_name', read_only=True)
    comparisonNotes = serializers.CharField(source='comparison_notes', read_only=True, allow_null=True)
    participants = TripParticipantSerializer(many=True, read_only=True)
    waypoints = serializers.SerializerMethodField()
    permissions = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Trip
        fields = [
            'id', 'title', 'description',
            'startDate', 'endDate', 'status', 'isPublic',
            'createdBy', 'createdByName', 'comparisonNotes',
            'participants', 'waypoints', 'permissions',
            'createdAt', 'updatedAt',
        ]
        read_only_fields = fields

    def get_waypoints(self, obj):
        waypoints = sorted(obj.waypoints.all(), key=lambda w: (w.order_index, w.created_at, str(w.id)))
        return WaypointSerializer(waypoints, many=True).data

    def get_permissions(self, obj):
        request = self.context.get('request')
        user_id = request.user.id if request is not None else None
        access = TripAccess.for_trip(obj)
        return {
            'canEdit': access.can_edit(user_id),
            'canManageParticipants': access.can_manage_participants(user_id),
            'canDelete': access.can_delete(user_id),
        }


class TripWriteSerializer(serializers.Serializer):
    """Accepts camelCase input, maps to snake_case model fields."""
    title = serializers.CharField(max_length=200)
    description = serializers.CharField(max_length=2000, required=False, allow_blank=True)
    startDate = serializers.DateField()
    endDate = serializers.DateField()
    isPublic = serializers.BooleanField(required=False)
    status = serializers.ChoiceField(choices=Trip.Status.choices, required=False)

    FIELD_MAP = {
        'title': 'title',
        'description': 'description',
        'startDate': 'start_date',
        'endDate': 'end_date',
        'isPublic': 'is_public',
        'status': 'status',
    }

    def validate(self, attrs):
        start_date = attrs.get('startDate', getattr(self.instance, 'start_date', None))
        end_date = attrs.get('endDate', getattr(self.instance, 'end_date', None))
        if start_date and end_date and start_date > end_date:
            raise serializers.ValidationError({'endDate': 'End date must be after start date.'})
        return attrs

    def create(self, validated_data):
        user = self.context['request'].user
        fields = {self.FIELD_MAP[key]: value for key, value in validated_data.items()}
        fields.pop('status', None)
        with transaction.atomic():
            trip = Trip.objects.create(created_by=user, **fields)
            TripParticipant.objects.create(
                trip=trip,
                user=user,
                role=TripParticipant.Role.OWNER,
                can_edit=True,
            )
        return trip

    def update(self, instance, validated_data):
        for key, value in validated_data.items():
            setattr(instance, self.FIELD_MAP[key], value)
        instance.save()
        return instance
