import pytest
from django.contrib.auth import get_user_model

from apps.invitations.models import TripInvitation
from apps.trips.models import Trip

pytestmark = pytest.mark.django_db

User = get_user_model()


@pytest.fixture
def staff(make_user):
    return make_user(email='staff@example.com', is_staff=True)


def test_non_staff_is_forbidden(client_for, creator):
    client = client_for(creator)
    assert client.get('/api/v1/admin/users').status_code == 403
    assert client.get('/api/v1/admin/trips').status_code == 403


def test_users_list_with_search(client_for, staff, creator, outsider):
    response = client_for(staff).get('/api/v1/admin/users', {'search': 'creator'})

    assert response.status_code == 200
    data = response.data['data']
    assert data['total'] == 1
    assert data['users'][0]['email'] == 'creator@example.com'
    assert data['users'][0]['role'] == 'user'


def test_users_list_counts_created_trips(client_for, staff, creator, trip):
    response = client_for(staff).get('/api/v1/admin/users', {'search': 'creator@'})
    assert response.data['data']['users'][0]['tripCount'] == 1


def test_role_toggle(client_for, staff, outsider):
    client = client_for(staff)

    response = client.put(f'/api/v1/admin/users/{outsider.id}/role', {'role': 'admin'}, format='json')
    assert response.status_code == 200
    outsider.refresh_from_db()
    assert outsider.is_staff

    client.put(f'/api/v1/admin/users/{outsider.id}/role', {'role': 'user'}, format='json')
    outsider.refresh_from_db()
    assert not outsider.is_staff


def test_invalid_role_is_rejected(client_for, staff, outsider):
    response = client_for(staff).put(f'/api/v1/admin/users/{outsider.id}/role', {'role': 'root'}, format='json')
    assert response.status_code == 400


def test_delete_user(client_for, staff, outsider):
    response = client_for(staff).delete(f'/api/v1/admin/users/{outsider.id}')

    assert response.status_code == 200
    assert not User.objects.filter(pk=outsider.pk).exists()


def test_cannot_delete_self(client_for, staff):
    response = client_for(staff).delete(f'/api/v1/admin/users/{staff.id}')

    assert response.status_code == 400
    assert User.objects.filter(pk=staff.pk).exists()


def test_deleting_trip_owner_is_conflict(client_for, staff, creator, trip):
    response = client_for(staff).delete(f'/api/v1/admin/users/{creator.id}')

    assert response.status_code == 409
    assert User.objects.filter(pk=creator.pk).exists()


def test_trips_list_and_delete(client_for, staff, creator, trip, make_waypoint):
    make_waypoint(trip)
    TripInvitation.objects.create(trip=trip, invited_email='x@example.com', invited_by=creator)
    client = client_for(staff)

    listing = client.get('/api/v1/admin/trips')
    assert listing.status_code == 200
    [row] = listing.data['data']['trips']
    assert row['title'] == 'Budapest Getaway'
    assert row['participantCount'] == 1
    assert row['waypointCount'] == 1
    assert row['createdByEmail'] == 'creator@example.com'

    response = client.delete(f'/api/v1/admin/trips/{trip.id}')
    assert response.status_code == 200
    assert not Trip.objects.filter(pk=trip.pk).exists()
    assert not TripInvitation.objects.exists()


def test_unknown_trip_is_404(client_for, staff):
    response = client_for(staff).delete('/api/v1/admin/trips/00000000-0000-0000-0000-000000000000')
    assert response.status_code == 404
