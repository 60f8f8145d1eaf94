import datetime
import itertools

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.trips.models import Trip, TripParticipant, Waypoint

User = get_user_model()

_sequence = itertools.count()


@pytest.fixture
def make_user(db):
    def _make_user(email=None, password='Str0ng-Passw0rd!', **extra):
        n = next(_sequence)
        email = email or f'user{n}@example.com'
        extra.setdefault('first_name', f'User{n}')
        extra.setdefault('last_name', 'Test')
        return User.objects.create_user(
            username=f'user{n}',
            email=email,
            password=password,
            **extra,
        )
    return _make_user


@pytest.fixture
def make_trip(db):
    def _make_trip(creator, title='Weekend away', is_public=False, with_owner_row=True, **extra):
        trip = Trip.objects.create(
            title=title,
            start_date=extra.pop('start_date', datetime.date(2025, 6, 1)),
            end_date=extra.pop('end_date', datetime.date(2025, 6, 5)),
            is_public=is_public,
            created_by=creator,
            **extra,
        )
        if with_owner_row:
            TripParticipant.objects.create(
                trip=trip,
                user=creator,
                role=TripParticipant.Role.OWNER,
                can_edit=True,
            )
        return trip
    return _make_trip


@pytest.fixture
def add_participant(db):
    def _add_participant(trip, user, role=TripParticipant.Role.MEMBER, can_edit=False):
        return TripParticipant.objects.create(trip=trip, user=user, role=role, can_edit=can_edit)
    return _add_participant


@pytest.fixture
def make_waypoint(db):
    def _make_waypoint(trip, name='Stop', order_index=0, **extra):
        extra.setdefault('latitude', 47.4979)
        extra.setdefault('longitude', 19.0402)
        return Waypoint.objects.create(trip=trip, name=name, order_index=order_index, **extra)
    return _make_waypoint


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    """Return an ``APIClient`` authenticated as the given user."""
    def _client_for(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return _client_for


@pytest.fixture
def creator(make_user):
    return make_user(email='creator@example.com', first_name='Ada', last_name='Creator')


@pytest.fixture
def outsider(make_user):
    return make_user(email='outsider@example.com')


@pytest.fixture
def trip(make_trip, creator):
    return make_trip(creator, title='Budapest Getaway')
