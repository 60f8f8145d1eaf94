"""
Invitation state machine.

    PENDING -> ACCEPTED | DECLINED | CANCELLED

Every transition re-evaluates access against freshly loaded rows and
raises DRF exceptions (``PermissionDenied``, ``Conflict``,
``ValidationError``) so views can stay thin. Duplicate guards are backed by
database constraints; a constraint violation is reported exactly like the
pre-check that would normally have caught it.
"""
import logging

from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied, ValidationError

from apps.invitations.models import TripInvitation
from apps.trips.access import (
    CANNOT_GRANT_EDIT,
    TripAccess,
    can_cancel_invitation,
    can_respond_to_invitation,
    is_trip_member,
    normalize_email,
)
from apps.trips.models import TripParticipant
from common.exceptions import Conflict

logger = logging.getLogger(__name__)

RESPONSE_STATUSES = (
    TripInvitation.Status.ACCEPTED,
    TripInvitation.Status.DECLINED,
)

ALREADY_PARTICIPANT = 'This user is already a participant of the trip.'
ALREADY_INVITED = 'There is already a pending invitation for this email address.'
NOT_PENDING = 'This invitation is no longer pending.'


def create_invitation(trip, inviter, email, role=TripParticipant.Role.MEMBER, can_edit=False, message=''):
    """
    Invite *email* to *trip* on behalf of *inviter*.

    Parameters
    ----------
    trip : Trip
        Target trip, ideally with ``participants__user`` prefetched.
    inviter : User
        Must be allowed to manage the trip's participants.
    email : str
        Address of the invitee; need not belong to a registered user.
    role, can_edit :
        Privileges granted verbatim on acceptance.

    Returns
    -------
    TripInvitation
        The new pending invitation.

    Raises
    ------
    PermissionDenied
        If *inviter* may not manage participants, or offers the edit flag
        without holding edit rights.
    Conflict
        If *email* already belongs to a participant, or a pending
        invitation for the same (trip, email) exists.
    """
    access = TripAccess.for_trip(trip)
    if not access.can_manage_participants(inviter.id):
        raise PermissionDenied('Only the trip creator, owners and organizers can invite participants.')
    if can_edit and not access.can_grant_edit(inviter.id):
        raise PermissionDenied(CANNOT_GRANT_EDIT)

    email = normalize_email(email)

    if is_trip_member(trip, email):
        raise Conflict(ALREADY_PARTICIPANT)

    if TripInvitation.objects.filter(
        trip=trip,
        invited_email=email,
        status=TripInvitation.Status.PENDING,
    ).exists():
        raise Conflict(ALREADY_INVITED)

    try:
        with transaction.atomic():
            invitation = TripInvitation.objects.create(
                trip=trip,
                invited_email=email,
                invited_by=inviter,
                role=role,
                can_edit=can_edit,
                message=message or '',
            )
    except IntegrityError:
        # Lost the race against a concurrent invite for the same address
        raise Conflict(ALREADY_INVITED)

    logger.info(
        'Invitation %s created for %s on trip %s by %s',
        invitation.id, email, trip.id, inviter.id,
    )
    return invitation


def ensure_can_respond(invitation, user):
    """Addressee check, then state check. Runs before the body is looked at."""
    if not can_respond_to_invitation(invitation, user.email):
        raise PermissionDenied('This invitation is not addressed to you.')
    if not invitation.is_pending:
        raise Conflict(NOT_PENDING)


def respond_to_invitation(invitation, user, response_status):
    """
    Accept or decline *invitation* as *user*.

    On acceptance the user joins the trip with the invitation's role and
    edit flag, unless they already hold a participant row; the invitation
    is accepted either way.
    """
    ensure_can_respond(invitation, user)

    if response_status not in RESPONSE_STATUSES:
        raise ValidationError({'status': 'Only accept (1) or decline (2) is a valid response.'})

    with transaction.atomic():
        # Re-read under lock so two concurrent responses cannot both win
        locked = TripInvitation.objects.select_for_update().get(pk=invitation.pk)
        if not locked.is_pending:
            raise Conflict(NOT_PENDING)

        locked.status = response_status
        locked.responded_at = timezone.now()
        locked.invited_user = user
        locked.save(update_fields=['status', 'responded_at', 'invited_user', 'updated_at'])

        if response_status == TripInvitation.Status.ACCEPTED:
            _join_trip(locked, user)

    logger.info(
        'Invitation %s %s by %s',
        locked.id, locked.get_status_display().lower(), user.id,
    )
    return locked


def _join_trip(invitation, user):
    if TripParticipant.objects.filter(trip_id=invitation.trip_id, user=user).exists():
        logger.debug('User %s already on trip %s, no participant added', user.id, invitation.trip_id)
        return
    try:
        with transaction.atomic():
            TripParticipant.objects.create(
                trip_id=invitation.trip_id,
                user=user,
                role=invitation.role,
                can_edit=invitation.can_edit,
            )
    except IntegrityError:
        # Joined concurrently through another path; treat as already joined
        logger.info('User %s joined trip %s concurrently', user.id, invitation.trip_id)


def cancel_invitation(invitation, user):
    """Withdraw a pending invitation. Allowed for the inviter and the trip creator."""
    if not can_cancel_invitation(invitation, user.id, invitation.trip.created_by_id):
        raise PermissionDenied('Only the inviter or the trip creator can cancel this invitation.')

    with transaction.atomic():
        locked = TripInvitation.objects.select_for_update().get(pk=invitation.pk)
        if not locked.is_pending:
            raise Conflict('Only pending invitations can be cancelled.')
        locked.status = TripInvitation.Status.CANCELLED
        locked.save(update_fields=['status', 'updated_at'])

    logger.info('Invitation %s cancelled by %s', locked.id, user.id)
    return locked
