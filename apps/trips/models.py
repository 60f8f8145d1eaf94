"""
Models for the Trips app.

Enumerations are integer-valued because clients exchange them as integers
on the wire.
"""
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from common.models import TimestampedModel


class Trip(TimestampedModel):
    """
    The top-level planning unit a user creates and others may join.

    ``created_by`` is fixed at creation and always carries the highest
    privilege on the trip, whether or not a participant row exists for it.
    """
    class Status(models.IntegerChoices):
        PLANNING = 0, 'Planning'
        ORGANIZATION = 1, 'Organization'
        COMPLETED = 2, 'Completed'

    title = models.CharField(max_length=200)
    description = models.TextField(max_length=2000, blank=True, default='')
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.PositiveSmallIntegerField(
        choices=Status.choices,
        default=Status.PLANNING,
        db_index=True,
    )
    is_public = models.BooleanField(default=False)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='created_trips',
    )
    # Cached output of the planned/actual comparison; recomputed on demand
    comparison_notes = models.TextField(null=True, blank=True)

    class Meta:
        db_table = 'trips'
        ordering = ['-created_at']

    def __str__(self):
        return self.title

    def clean(self):
        from django.core.exceptions import ValidationError
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError('End date must be after start date.')

    @property
    def participant_count(self):
        return self.participants.count()

    @property
    def waypoint_count(self):
        return self.waypoints.count()


class TripParticipant(TimestampedModel):
    """
    Links a user to a trip.

    ``role`` governs who may manage participants; ``can_edit`` governs who
    may change the trip's content. The two are evaluated independently.
    """
    class Role(models.IntegerChoices):
        OWNER = 0, 'Owner'
        ORGANIZER = 1, 'Organizer'
        MEMBER = 2, 'Member'

    trip = models.ForeignKey(
        Trip,
        on_delete=models.CASCADE,
        related_name='participants',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='trip_participations',
    )
    role = models.PositiveSmallIntegerField(
        choices=Role.choices,
        default=Role.MEMBER,
    )
    can_edit = models.BooleanField(default=False)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'trip_participants'
        ordering = ['joined_at']
        constraints = [
            models.UniqueConstraint(
                fields=['trip', 'user'],
                name='uq_trip_participant_user',
            ),
        ]

    def __str__(self):
        return f'{self.user} in {self.trip} ({self.get_role_display()})'


class Waypoint(TimestampedModel):
    """
    An itinerary stop with planned and actual timings.

    ``order_index`` only sorts; gaps and duplicates are allowed, ties fall
    back to insertion order.
    """
    class Type(models.IntegerChoices):
        RESTAURANT = 0, 'Restaurant'
        ACCOMMODATION = 1, 'Accommodation'
        ATTRACTION = 2, 'Attraction'
        GAS_STATION = 3, 'Gas station'
        PARKING = 4, 'Parking'
        OTHER = 5, 'Other'

    trip = models.ForeignKey(
        Trip,
        on_delete=models.CASCADE,
        related_name='waypoints',
    )
    name = models.CharField(max_length=200)
    description = models.TextField(max_length=1000, blank=True, default='')
    latitude = models.FloatField(
        validators=[MinValueValidator(-90), MaxValueValidator(90)],
    )
    longitude = models.FloatField(
        validators=[MinValueValidator(-180), MaxValueValidator(180)],
    )
    type = models.PositiveSmallIntegerField(
        choices=Type.choices,
        default=Type.OTHER,
    )
    address = models.CharField(max_length=500, blank=True, default='')
    order_index = models.IntegerField(default=0)
    planned_arrival = models.DateTimeField(null=True, blank=True)
    planned_departure = models.DateTimeField(null=True, blank=True)
    actual_arrival = models.DateTimeField(null=True, blank=True)
    actual_departure = models.DateTimeField(null=True, blank=True)
    notes = models.CharField(max_length=500, blank=True, default='')

    class Meta:
        db_table = 'waypoints'
        ordering = ['order_index', 'created_at', 'id']
        indexes = [
            models.Index(fields=['trip', 'order_index'], name='ix_waypoint_trip_order'),
        ]

    def __str__(self):
        return f'{self.name} (#{self.order_index})'

    @property
    def has_actual_times(self):
        return self.actual_arrival is not None or self.actual_departure is not None
