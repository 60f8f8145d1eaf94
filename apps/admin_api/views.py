"""
Admin API Views - staff-only endpoints consumed by the admin dashboard.

All endpoints require a staff account (IsAdminUser).
All responses follow the standard envelope: { "success": true, "data": { ... } }
"""
import logging

from django.contrib.auth import get_user_model
from django.db.models import Count, ProtectedError, Q
from django.shortcuts import get_object_or_404
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response

from apps.trips.models import Trip
from common.exceptions import Conflict

logger = logging.getLogger(__name__)

User = get_user_model()

ROLE_ADMIN = 'admin'
ROLE_USER = 'user'


def _paging(request):
    try:
        page = max(1, int(request.query_params.get('page', 1)))
        limit = min(100, max(1, int(request.query_params.get('limit', 20))))
    except ValueError:
        raise ValidationError({'page': 'page and limit must be integers.'})
    return page, limit


# ---------------------------------------------------------------------------
# Admin Users
# ---------------------------------------------------------------------------

@api_view(['GET'])
@permission_classes([IsAdminUser])
def admin_users_list(request):
    search = request.query_params.get('search', '').strip()
    page, limit = _paging(request)

    qs = User.objects.annotate(
        trip_count_ann=Count('created_trips', distinct=True),
        participation_count_ann=Count('trip_participations', distinct=True),
    ).order_by('-created_at')

    if search:
        qs = qs.filter(
            Q(email__icontains=search) |
            Q(first_name__icontains=search) |
            Q(last_name__icontains=search)
        )

    total = qs.count()
    offset = (page - 1) * limit
    users = list(qs[offset: offset + limit])

    users_data = []
    for u in users:
        users_data.append({
            'id': str(u.id),
            'email': u.email,
            'displayName': u.display_name,
            'firstName': u.first_name or '',
            'lastName': u.last_name or '',
            'status': 'active' if u.is_active else 'inactive',
            'role': ROLE_ADMIN if u.is_staff else ROLE_USER,
            'tripCount': u.trip_count_ann,
            'participationCount': u.participation_count_ann,
            'createdAt': u.created_at.isoformat(),
            'lastLoginAt': u.last_login.isoformat() if u.last_login else None,
        })

    return Response({
        'success': True,
        'data': {
            'users': users_data,
            'total': total,
            'totalPages': max(1, (total + limit - 1) // limit),
        },
    })


@api_view(['DELETE'])
@permission_classes([IsAdminUser])
def admin_user_delete(request, user_id):
    user = get_object_or_404(User, id=user_id)

    if user.id == request.user.id:
        raise ValidationError({'detail': 'You cannot delete your own account.'})

    try:
        user.delete()
    except ProtectedError:
        raise Conflict('This user still owns trips or has sent invitations. Delete or reassign them first.')

    logger.info('User %s deleted by admin %s', user_id, request.user.id)
    return Response({'success': True, 'message': 'User deleted.'})


@api_view(['PUT'])
@permission_classes([IsAdminUser])
def admin_user_role(request, user_id):
    """
    PUT /api/v1/admin/users/{id}/role
    Body: {"role": "admin" | "user"}
    """
    user = get_object_or_404(User, id=user_id)

    role = request.data.get('role')
    if role not in (ROLE_ADMIN, ROLE_USER):
        raise ValidationError({'role': f'Role must be "{ROLE_ADMIN}" or "{ROLE_USER}".'})

    user.is_staff = role == ROLE_ADMIN
    user.save(update_fields=['is_staff', 'updated_at'])

    logger.info('User %s role set to %s by admin %s', user.id, role, request.user.id)
    return Response({
        'success': True,
        'data': {'id': str(user.id), 'role': role},
        'message': 'Role updated.',
    })


# ---------------------------------------------------------------------------
# Admin Trips
# ---------------------------------------------------------------------------

@api_view(['GET'])
@permission_classes([IsAdminUser])
def admin_trips_list(request):
    search = request.query_params.get('search', '').strip()
    status_filter = request.query_params.get('status', '').strip()
    page, limit = _paging(request)

    qs = Trip.objects.select_related('created_by').annotate(
        participant_count_ann=Count('participants', distinct=True),
        waypoint_count_ann=Count('waypoints', distinct=True),
    ).order_by('-created_at')

    if search:
        qs = qs.filter(Q(title__icontains=search) | Q(created_by__email__icontains=search))
    if status_filter:
        qs = qs.filter(status=status_filter)

    total = qs.count()
    offset = (page - 1) * limit
    trips = qs[offset: offset + limit]

    trips_data = []
    for t in trips:
        trips_data.append({
            'id': str(t.id),
            'title': t.title,
            'description': t.description or '',
            'startDate': str(t.start_date),
            'endDate': str(t.end_date),
            'status': t.status,
            'isPublic': t.is_public,
            'createdBy': t.created_by.display_name,
            'createdByEmail': t.created_by.email,
            'participantCount': t.participant_count_ann,
            'waypointCount': t.waypoint_count_ann,
            'createdAt': t.created_at.isoformat(),
        })

    return Response({
        'success': True,
        'data': {
            'trips': trips_data,
            'total': total,
            'totalPages': max(1, (total + limit - 1) // limit),
        },
    })


@api_view(['DELETE'])
@permission_classes([IsAdminUser])
def admin_trip_delete(request, trip_id):
    trip = get_object_or_404(Trip, id=trip_id)
    trip.delete()
    logger.info('Trip %s deleted by admin %s', trip_id, request.user.id)
    return Response({'success': True, 'message': 'Trip deleted.'})
