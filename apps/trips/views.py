"""
Views for the Trips app.

Detail routes always look a trip up among *all* trips so that a missing
trip answers 404 and an existing-but-forbidden one answers 403.
"""
import logging

from django.db import IntegrityError, transaction
from django.db.models import Prefetch, Q
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.trips.access import CANNOT_GRANT_EDIT, TripAccess, is_trip_member
from apps.trips.models import Trip, TripParticipant, Waypoint
from apps.trips.permissions import (
    CanEditTrip,
    CanManageParticipants,
    CanViewOrEditTrip,
    CanViewTrip,
    IsTripCreator,
    IsTripParticipant,
)
from apps.trips.serializers import (
    ParticipantCreateSerializer,
    ParticipantUpdateSerializer,
    TripParticipantSerializer,
    TripSerializer,
    TripSummarySerializer,
    TripWriteSerializer,
    WaypointReorderSerializer,
    WaypointSerializer,
    WaypointWriteSerializer,
)
from apps.trips.services.comparison import refresh_comparison_notes
from apps.trips.services.pdf_export import export_filename, render_trip_pdf
from common.exceptions import Conflict

logger = logging.getLogger(__name__)


def _aggregate_queryset():
    return Trip.objects.select_related('created_by').prefetch_related(
        Prefetch('participants', queryset=TripParticipant.objects.select_related('user')),
        'waypoints',
    )


class TripViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Trip CRUD operations.

    list:    GET    /api/v1/trips/?status=<0|1|2>&is_public=<bool>
    create:  POST   /api/v1/trips/
    read:    GET    /api/v1/trips/{id}/
    update:  PATCH  /api/v1/trips/{id}/
    delete:  DELETE /api/v1/trips/{id}/
    compare: POST   /api/v1/trips/{id}/compare/
    export:  GET    /api/v1/trips/{id}/export/pdf/
    """
    permission_classes = [IsAuthenticated]
    filterset_fields = ['status', 'is_public']

    def get_queryset(self):
        queryset = _aggregate_queryset()
        if self.action != 'list':
            return queryset

        user = self.request.user
        queryset = queryset.filter(
            Q(created_by=user) | Q(participants__user=user) | Q(is_public=True),
        ).distinct()
        return queryset.order_by('-created_at')

    def filter_queryset(self, queryset):
        # Query filters narrow the listing only; detail routes see every trip
        if self.action != 'list':
            return queryset
        return super().filter_queryset(queryset)

    def get_serializer_class(self):
        if self.action == 'list':
            return TripSummarySerializer
        if self.action in ('create', 'update', 'partial_update'):
            return TripWriteSerializer
        return TripSerializer

    def get_permissions(self):
        if self.action in ('update', 'partial_update'):
            return [IsAuthenticated(), CanEditTrip()]
        if self.action == 'destroy':
            return [IsAuthenticated(), IsTripCreator()]
        if self.action == 'compare':
            return [IsAuthenticated(), IsTripParticipant()]
        if self.action == 'participants' and self.request.method == 'POST':
            return [IsAuthenticated(), CanManageParticipants()]
        if self.action == 'participant_detail':
            return [IsAuthenticated(), CanManageParticipants()]
        if self.action in ('retrieve', 'participants', 'export_pdf'):
            return [IsAuthenticated(), CanViewTrip()]
        return [IsAuthenticated()]

    def _detail_response(self, trip, http_status=status.HTTP_200_OK):
        trip = _aggregate_queryset().get(pk=trip.pk)
        serializer = TripSerializer(trip, context=self.get_serializer_context())
        return Response({'success': True, 'data': serializer.data}, status=http_status)

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        serializer = TripSummarySerializer(queryset, many=True)
        return Response({'success': True, 'data': serializer.data})

    def create(self, request, *args, **kwargs):
        serializer = TripWriteSerializer(data=request.data, context=self.get_serializer_context())
        serializer.is_valid(raise_exception=True)
        trip = serializer.save()
        logger.info('Trip %s created by %s', trip.id, request.user.id)
        return self._detail_response(trip, status.HTTP_201_CREATED)

    def retrieve(self, request, *args, **kwargs):
        instance = self.get_object()
        serializer = TripSerializer(instance, context=self.get_serializer_context())
        return Response({'success': True, 'data': serializer.data})

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', True)
        instance = self.get_object()
        serializer = TripWriteSerializer(
            instance,
            data=request.data,
            partial=partial,
            context=self.get_serializer_context(),
        )
        serializer.is_valid(raise_exception=True)
        trip = serializer.save()
        return self._detail_response(trip)

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        trip_id = instance.id
        # Participants, waypoints and invitations cascade
        instance.delete()
        logger.info('Trip %s deleted by %s', trip_id, request.user.id)
        return Response(
            {'success': True, 'message': 'Trip deleted.'},
            status=status.HTTP_200_OK,
        )

    # ------------------------------------------------------------------
    # Participants
    # ------------------------------------------------------------------

    @action(detail=True, methods=['get', 'post'])
    def participants(self, request, pk=None):
        """
        GET  /api/v1/trips/{id}/participants/
        POST /api/v1/trips/{id}/participants/
        Body: {"userEmail": "...", "role": 2, "canEdit": false}
        """
        trip = self.get_object()

        if request.method == 'GET':
            serializer = TripParticipantSerializer(trip.participants.all(), many=True)
            return Response({'success': True, 'data': serializer.data})

        serializer = ParticipantCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.user

        if serializer.validated_data['canEdit'] and not TripAccess.for_trip(trip).can_grant_edit(request.user.id):
            raise PermissionDenied(CANNOT_GRANT_EDIT)

        if is_trip_member(trip, user.email):
            raise Conflict('This user is already a participant of the trip.')

        try:
            with transaction.atomic():
                participant = TripParticipant.objects.create(
                    trip=trip,
                    user=user,
                    role=serializer.validated_data['role'],
                    can_edit=serializer.validated_data['canEdit'],
                )
        except IntegrityError:
            raise Conflict('This user is already a participant of the trip.')

        logger.info('User %s added to trip %s by %s', user.id, trip.id, request.user.id)
        return Response(
            {
                'success': True,
                'data': TripParticipantSerializer(participant).data,
            },
            status=status.HTTP_201_CREATED,
        )

    @action(
        detail=True,
        methods=['patch', 'delete'],
        url_path=r'participants/(?P<participant_pk>[^/.]+)',
    )
    def participant_detail(self, request, pk=None, participant_pk=None):
        """
        PATCH  /api/v1/trips/{id}/participants/{participant_id}/
        DELETE /api/v1/trips/{id}/participants/{participant_id}/
        """
        trip = self.get_object()
        participant = next(
            (p for p in trip.participants.all() if str(p.id) == str(participant_pk)),
            None,
        )
        if participant is None:
            raise NotFound('Participant not found.')

        if participant.user_id == trip.created_by_id:
            raise Conflict('The trip creator cannot be changed or removed.')

        if request.method == 'DELETE':
            participant.delete()
            logger.info('Participant %s removed from trip %s by %s', participant_pk, trip.id, request.user.id)
            return Response(
                {'success': True, 'message': 'Participant removed.'},
                status=status.HTTP_200_OK,
            )

        access = TripAccess.for_trip(trip)
        if not access.can_change_participant(request.user.id, participant.user_id):
            raise PermissionDenied('You cannot change your own role or edit rights.')

        serializer = ParticipantUpdateSerializer(participant, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        if serializer.validated_data.get('canEdit') and not access.can_grant_edit(request.user.id):
            raise PermissionDenied(CANNOT_GRANT_EDIT)
        participant = serializer.save()
        return Response({'success': True, 'data': TripParticipantSerializer(participant).data})

    # ------------------------------------------------------------------
    # Comparison and export
    # ------------------------------------------------------------------

    @action(detail=True, methods=['post'])
    def compare(self, request, pk=None):
        """
        Recompute the planned vs. actual comparison.

        POST /api/v1/trips/{id}/compare/
        """
        trip = self.get_object()
        report = refresh_comparison_notes(trip)
        return Response({'success': True, 'data': {'comparisonNotes': report}})

    @action(detail=True, methods=['get'], url_path='export/pdf')
    def export_pdf(self, request, pk=None):
        """
        GET /api/v1/trips/{id}/export/pdf/
        """
        trip = self.get_object()
        document = render_trip_pdf(trip)
        response = HttpResponse(document, content_type='application/pdf')
        response['Content-Disposition'] = f'attachment; filename="{export_filename(trip)}"'
        return response


class WaypointViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Waypoint CRUD operations.

    list:    GET    /api/v1/trips/{trip_id}/waypoints/
    create:  POST   /api/v1/trips/{trip_id}/waypoints/
    read:    GET    /api/v1/trips/{trip_id}/waypoints/{id}/
    update:  PATCH  /api/v1/trips/{trip_id}/waypoints/{id}/
    delete:  DELETE /api/v1/trips/{trip_id}/waypoints/{id}/
    reorder: POST   /api/v1/trips/{trip_id}/waypoints/reorder/
    """
    permission_classes = [IsAuthenticated, CanViewOrEditTrip]

    def get_trip(self):
        if not hasattr(self, '_trip'):
            self._trip = get_object_or_404(
                Trip.objects.prefetch_related('participants'),
                pk=self.kwargs['trip_pk'],
            )
        return self._trip

    def get_queryset(self):
        return Waypoint.objects.filter(trip=self.get_trip()).order_by('order_index', 'created_at', 'id')

    def get_object(self):
        waypoint = get_object_or_404(self.get_queryset(), pk=self.kwargs['pk'])
        # Reuse the loaded trip (and its roster) for the permission check
        waypoint.trip = self.get_trip()
        self.check_object_permissions(self.request, waypoint)
        return waypoint

    def get_serializer_class(self):
        if self.action in ('create', 'update', 'partial_update'):
            return WaypointWriteSerializer
        if self.action == 'reorder':
            return WaypointReorderSerializer
        return WaypointSerializer

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['trip'] = self.get_trip()
        return context

    def _authorized_trip(self):
        trip = self.get_trip()
        self.check_object_permissions(self.request, trip)
        return trip

    def list(self, request, *args, **kwargs):
        self._authorized_trip()
        serializer = WaypointSerializer(self.get_queryset(), many=True)
        return Response({'success': True, 'data': serializer.data})

    def retrieve(self, request, *args, **kwargs):
        serializer = WaypointSerializer(self.get_object())
        return Response({'success': True, 'data': serializer.data})

    def create(self, request, *args, **kwargs):
        self._authorized_trip()
        serializer = WaypointWriteSerializer(data=request.data, context=self.get_serializer_context())
        serializer.is_valid(raise_exception=True)
        waypoint = serializer.save()
        return Response(
            {
                'success': True,
                'data': WaypointSerializer(waypoint).data,
            },
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', True)
        waypoint = self.get_object()
        serializer = WaypointWriteSerializer(
            waypoint,
            data=request.data,
            partial=partial,
            context=self.get_serializer_context(),
        )
        serializer.is_valid(raise_exception=True)
        waypoint = serializer.save()
        return Response({'success': True, 'data': WaypointSerializer(waypoint).data})

    def destroy(self, request, *args, **kwargs):
        waypoint = self.get_object()
        waypoint.delete()
        return Response(
            {'success': True, 'message': 'Waypoint deleted.'},
            status=status.HTTP_200_OK,
        )

    @action(detail=False, methods=['post'])
    def reorder(self, request, trip_pk=None):
        """
        Reorder waypoints within a trip.

        POST /api/v1/trips/{trip_id}/waypoints/reorder/
        Body: {"waypointIds": ["uuid1", "uuid2", "uuid3"]}
        """
        trip = self._authorized_trip()
        serializer = WaypointReorderSerializer(
            data=request.data,
            context={'trip': trip},
        )
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            for order, waypoint_id in enumerate(serializer.validated_data['waypointIds']):
                Waypoint.objects.filter(id=waypoint_id, trip=trip).update(order_index=order)

        return Response(
            {
                'success': True,
                'data': WaypointSerializer(self.get_queryset(), many=True).data,
            }
        )
