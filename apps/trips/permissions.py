"""
Custom permissions for the Trips app.

Each class adapts one ``TripAccess`` decision to DRF. The object handed to
``has_object_permission`` is either a Trip or an object with a ``trip``
attribute (Waypoint, TripParticipant).
"""
from rest_framework.permissions import SAFE_METHODS, BasePermission

from apps.trips.access import Action, TripAccess


def _trip_of(obj):
    return getattr(obj, 'trip', obj)


class TripActionPermission(BasePermission):
    action = Action.VIEW

    def has_object_permission(self, request, view, obj):
        access = TripAccess.for_trip(_trip_of(obj))
        return access.allows(self.action, request.user.id)


class CanViewTrip(TripActionPermission):
    """Creator, any participant, or anyone at all when the trip is public."""
    message = 'You do not have access to this trip.'
    action = Action.VIEW


class IsTripParticipant(TripActionPermission):
    """Creator or a participant; public visibility is not enough."""
    message = 'You must be a participant of this trip.'
    action = Action.PARTICIPATE


class CanEditTrip(TripActionPermission):
    """Creator or a participant whose edit flag is set."""
    message = 'You do not have permission to edit this trip.'
    action = Action.EDIT


class CanManageParticipants(TripActionPermission):
    """Creator or a participant with the Owner or Organizer role."""
    message = 'Only the trip creator, owners and organizers can manage participants.'
    action = Action.MANAGE_PARTICIPANTS


class IsTripCreator(TripActionPermission):
    message = 'Only the trip creator can delete this trip.'
    action = Action.DELETE


class CanViewOrEditTrip(BasePermission):
    """
    Read access for viewers, write access for editors.

    Used on waypoint routes, where GET needs view rights and every other
    method needs edit rights.
    """

    def has_object_permission(self, request, view, obj):
        access = TripAccess.for_trip(_trip_of(obj))
        if request.method in SAFE_METHODS:
            self.message = CanViewTrip.message
            return access.can_view(request.user.id)
        self.message = CanEditTrip.message
        return access.can_edit(request.user.id)
