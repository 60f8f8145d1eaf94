"""
Models for the Invitations app.
"""
from django.conf import settings
from django.db import models
from django.db.models import Q

from apps.trips.models import Trip, TripParticipant
from common.models import TimestampedModel


class InvitationStatus(models.IntegerChoices):
    PENDING = 0, 'Pending'
    ACCEPTED = 1, 'Accepted'
    DECLINED = 2, 'Declined'
    CANCELLED = 3, 'Cancelled'


class TripInvitation(TimestampedModel):
    """
    An offer, addressed to an email, to join a trip with a proposed role and
    edit flag.

    Only ``PENDING`` invitations can change state; the other three states
    are terminal. At most one pending invitation may exist per
    (trip, email), enforced at the database level.
    """
    Status = InvitationStatus

    trip = models.ForeignKey(
        Trip,
        on_delete=models.CASCADE,
        related_name='invitations',
    )
    invited_email = models.EmailField(max_length=254)
    invited_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='sent_invitations',
    )
    # Set once the invitee responds
    invited_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='received_invitations',
    )
    role = models.PositiveSmallIntegerField(
        choices=TripParticipant.Role.choices,
        default=TripParticipant.Role.MEMBER,
    )
    can_edit = models.BooleanField(default=False)
    status = models.PositiveSmallIntegerField(
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    message = models.CharField(max_length=500, blank=True, default='')
    responded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'trip_invitations'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['trip', 'invited_email'],
                condition=Q(status=InvitationStatus.PENDING),
                name='uq_pending_invitation_per_email',
            ),
        ]
        indexes = [
            models.Index(fields=['invited_email', 'status'], name='ix_invitation_email_status'),
        ]

    def __str__(self):
        return f'{self.invited_email} -> {self.trip} ({self.get_status_display()})'

    def save(self, *args, **kwargs):
        if self.invited_email:
            self.invited_email = self.invited_email.strip().lower()
        super().save(*args, **kwargs)

    @property
    def is_pending(self):
        return self.status == self.Status.PENDING
