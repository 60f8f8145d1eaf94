"""
Access decisions for trips and invitations.

Everything here is a pure function of already-loaded data: the trip's
creator id, its visibility flag and its participant roster. Nothing in
this module touches the database, so a decision is always evaluated
fresh from whatever the caller loaded for the current request.

Two privilege axes are evaluated independently:

* ``role`` (Owner / Organizer / Member) decides who may manage
  participants and send invitations;
* ``can_edit`` decides who may change the trip and its waypoints.

The creator outranks every participant on both axes, even when no
participant row exists for them.
"""
import enum

from apps.trips.models import TripParticipant

MANAGING_ROLES = frozenset({
    TripParticipant.Role.OWNER,
    TripParticipant.Role.ORGANIZER,
})


class Action(enum.Enum):
    VIEW = 'view'
    PARTICIPATE = 'participate'
    EDIT = 'edit'
    MANAGE_PARTICIPANTS = 'manage_participants'
    DELETE = 'delete'


def normalize_email(email):
    return (email or '').strip().lower()


class TripAccess:
    """
    Permission evaluator for a single trip aggregate.

    ``participants`` is any iterable of objects exposing ``user_id``,
    ``role`` and ``can_edit`` (model instances or plain records).
    """

    def __init__(self, creator_id, is_public, participants):
        self.creator_id = creator_id
        self.is_public = bool(is_public)
        self._participants = {p.user_id: p for p in participants}

    @classmethod
    def for_trip(cls, trip):
        # Uses the prefetched roster when the view loaded one
        return cls(trip.created_by_id, trip.is_public, trip.participants.all())

    def is_creator(self, user_id):
        return user_id is not None and user_id == self.creator_id

    def participant_for(self, user_id):
        if user_id is None:
            return None
        return self._participants.get(user_id)

    def can_view(self, user_id):
        return self.is_public or self.can_participate(user_id)

    def can_participate(self, user_id):
        return self.is_creator(user_id) or self.participant_for(user_id) is not None

    def can_edit(self, user_id):
        if self.is_creator(user_id):
            return True
        participant = self.participant_for(user_id)
        return participant is not None and bool(participant.can_edit)

    def can_manage_participants(self, user_id):
        if self.is_creator(user_id):
            return True
        participant = self.participant_for(user_id)
        return participant is not None and participant.role in MANAGING_ROLES

    def can_delete(self, user_id):
        return self.is_creator(user_id)

    def can_grant_edit(self, user_id):
        """A manager hands out the edit flag only if they hold edit rights."""
        return self.can_manage_participants(user_id) and self.can_edit(user_id)

    def can_change_participant(self, user_id, participant_user_id):
        # Managers never rewrite their own row
        if participant_user_id == user_id and not self.is_creator(user_id):
            return False
        return self.can_manage_participants(user_id)

    def allows(self, action, user_id):
        checks = {
            Action.VIEW: self.can_view,
            Action.PARTICIPATE: self.can_participate,
            Action.EDIT: self.can_edit,
            Action.MANAGE_PARTICIPANTS: self.can_manage_participants,
            Action.DELETE: self.can_delete,
        }
        return checks[action](user_id)


def can_respond_to_invitation(invitation, email):
    """Only the addressee may accept or decline, matched on email."""
    email = normalize_email(email)
    return bool(email) and email == normalize_email(invitation.invited_email)


def can_cancel_invitation(invitation, user_id, trip_creator_id):
    """The inviter or the trip creator may withdraw an invitation."""
    if user_id is None:
        return False
    return user_id == invitation.invited_by_id or user_id == trip_creator_id


CANNOT_GRANT_EDIT = 'Only participants who can edit the trip may grant edit rights.'


def is_trip_member(trip, email):
    """True when *email* belongs to the creator or anyone on the loaded roster."""
    email = normalize_email(email)
    if normalize_email(trip.created_by.email) == email:
        return True
    return any(normalize_email(p.user.email) == email for p in trip.participants.all())
