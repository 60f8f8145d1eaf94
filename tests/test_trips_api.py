import pytest

from apps.invitations.models import TripInvitation
from apps.trips.models import Trip, TripParticipant, Waypoint

pytestmark = pytest.mark.django_db

TRIPS_URL = '/api/v1/trips/'


def _detail(trip):
    return f'{TRIPS_URL}{trip.id}/'


class TestCreateTrip:

    def test_creator_gets_owner_row(self, client_for, creator):
        response = client_for(creator).post(TRIPS_URL, {
            'title': 'Lake Como',
            'description': 'Boats and villas',
            'startDate': '2025-07-01',
            'endDate': '2025-07-04',
            'isPublic': False,
        }, format='json')

        assert response.status_code == 201
        data = response.data['data']
        assert data['title'] == 'Lake Como'
        assert data['status'] == Trip.Status.PLANNING
        assert data['createdBy'] == str(creator.id)
        assert data['permissions'] == {'canEdit': True, 'canManageParticipants': True, 'canDelete': True}

        owner_row = TripParticipant.objects.get(trip_id=data['id'], user=creator)
        assert owner_row.role == TripParticipant.Role.OWNER
        assert owner_row.can_edit

    def test_end_before_start_is_rejected(self, client_for, creator):
        response = client_for(creator).post(TRIPS_URL, {
            'title': 'Backwards',
            'startDate': '2025-07-04',
            'endDate': '2025-07-01',
        }, format='json')

        assert response.status_code == 400
        assert response.data['success'] is False
        assert response.data['error']['code'] == 'validation_error'
        assert 'endDate' in response.data['error']['details']

    def test_anonymous_request_is_rejected(self, api_client):
        response = api_client.post(TRIPS_URL, {'title': 'x'}, format='json')
        assert response.status_code == 401


class TestListTrips:

    def test_lists_created_joined_and_public_trips(self, client_for, make_user, make_trip, add_participant):
        me = make_user()
        other = make_user()
        mine = make_trip(me, title='Mine')
        joined = make_trip(other, title='Joined')
        add_participant(joined, me)
        public = make_trip(other, title='Public', is_public=True)
        make_trip(other, title='Hidden')

        response = client_for(me).get(TRIPS_URL)

        assert response.status_code == 200
        titles = {t['title'] for t in response.data['data']}
        assert titles == {mine.title, joined.title, public.title}

    def test_public_trip_joined_by_user_is_listed_once(self, client_for, make_user, make_trip, add_participant):
        me = make_user()
        trip = make_trip(make_user(), is_public=True)
        add_participant(trip, me)

        response = client_for(me).get(TRIPS_URL)

        assert [t['id'] for t in response.data['data']] == [str(trip.id)]

    def test_status_filter(self, client_for, creator, make_trip):
        make_trip(creator, title='Planning')
        make_trip(creator, title='Done', status=Trip.Status.COMPLETED)

        response = client_for(creator).get(TRIPS_URL, {'status': Trip.Status.COMPLETED})

        assert [t['title'] for t in response.data['data']] == ['Done']


class TestRetrieveTrip:

    def test_missing_trip_is_404(self, client_for, creator):
        response = client_for(creator).get(f'{TRIPS_URL}00000000-0000-0000-0000-000000000000/')
        assert response.status_code == 404
        assert response.data['error']['code'] == 'not_found'

    def test_private_trip_is_403_for_outsider(self, client_for, trip, outsider):
        response = client_for(outsider).get(_detail(trip))
        assert response.status_code == 403
        assert response.data['error']['code'] == 'permission_denied'

    def test_public_trip_is_visible_to_outsider_without_rights(self, client_for, make_trip, creator, outsider):
        public = make_trip(creator, is_public=True)

        response = client_for(outsider).get(_detail(public))

        assert response.status_code == 200
        assert response.data['data']['permissions'] == {
            'canEdit': False,
            'canManageParticipants': False,
            'canDelete': False,
        }

    def test_waypoints_come_back_in_order(self, client_for, trip, creator, make_waypoint):
        make_waypoint(trip, name='C', order_index=5)
        make_waypoint(trip, name='A', order_index=-1)
        make_waypoint(trip, name='B', order_index=2)

        response = client_for(creator).get(_detail(trip))

        assert [w['name'] for w in response.data['data']['waypoints']] == ['A', 'B', 'C']

    def test_list_filters_do_not_hide_the_detail_route(self, client_for, trip, creator):
        response = client_for(creator).get(_detail(trip), {'status': Trip.Status.COMPLETED})

        assert response.status_code == 200
        assert response.data['data']['id'] == str(trip.id)


class TestUpdateTrip:

    def test_editor_can_update(self, client_for, trip, make_user, add_participant):
        editor = make_user()
        add_participant(trip, editor, can_edit=True)

        response = client_for(editor).patch(_detail(trip), {'status': Trip.Status.ORGANIZATION}, format='json')

        assert response.status_code == 200
        trip.refresh_from_db()
        assert trip.status == Trip.Status.ORGANIZATION

    def test_organizer_without_edit_flag_cannot_update(self, client_for, trip, make_user, add_participant):
        organizer = make_user()
        add_participant(trip, organizer, role=TripParticipant.Role.ORGANIZER, can_edit=False)

        response = client_for(organizer).patch(_detail(trip), {'title': 'Hijacked'}, format='json')

        assert response.status_code == 403
        trip.refresh_from_db()
        assert trip.title == 'Budapest Getaway'

    def test_partial_update_keeps_date_order(self, client_for, trip, creator):
        response = client_for(creator).patch(_detail(trip), {'endDate': '2025-05-01'}, format='json')
        assert response.status_code == 400


class TestDeleteTrip:

    def test_creator_deletes_and_everything_cascades(self, client_for, trip, creator, make_user, add_participant, make_waypoint):
        add_participant(trip, make_user())
        make_waypoint(trip)
        TripInvitation.objects.create(trip=trip, invited_email='x@example.com', invited_by=creator)

        response = client_for(creator).delete(_detail(trip))

        assert response.status_code == 200
        assert not Trip.objects.filter(pk=trip.pk).exists()
        assert not TripParticipant.objects.filter(trip_id=trip.pk).exists()
        assert not Waypoint.objects.filter(trip_id=trip.pk).exists()
        assert not TripInvitation.objects.filter(trip_id=trip.pk).exists()

    def test_owner_role_participant_cannot_delete(self, client_for, trip, make_user, add_participant):
        owner = make_user()
        add_participant(trip, owner, role=TripParticipant.Role.OWNER, can_edit=True)

        response = client_for(owner).delete(_detail(trip))

        assert response.status_code == 403
        assert Trip.objects.filter(pk=trip.pk).exists()

    def test_list_filters_do_not_hide_the_trip_being_deleted(self, client_for, trip, creator):
        response = client_for(creator).delete(f'{_detail(trip)}?status={Trip.Status.COMPLETED}')

        assert response.status_code == 200
        assert not Trip.objects.filter(pk=trip.pk).exists()


class TestCompare:

    def test_participant_triggers_comparison(self, client_for, trip, make_user, add_participant):
        member = make_user()
        add_participant(trip, member)

        response = client_for(member).post(f'{_detail(trip)}compare/')

        assert response.status_code == 200
        notes = response.data['data']['comparisonNotes']
        assert notes.startswith('Comparison - Planned vs. Actual')
        trip.refresh_from_db()
        assert trip.comparison_notes == notes

    def test_outsider_cannot_compare_public_trip(self, client_for, make_trip, creator, outsider):
        public = make_trip(creator, is_public=True)
        response = client_for(outsider).post(f'{_detail(public)}compare/')
        assert response.status_code == 403


class TestExportPdf:

    def test_viewer_downloads_pdf(self, client_for, make_trip, creator, outsider, make_waypoint):
        public = make_trip(creator, title='Tokaj Wine Tour', is_public=True)
        make_waypoint(public, name='Cellar')

        response = client_for(outsider).get(f'{_detail(public)}export/pdf/')

        assert response.status_code == 200
        assert response['Content-Type'] == 'application/pdf'
        assert 'attachment; filename="Trip_tokaj-wine-tour_' in response['Content-Disposition']
        assert response.content.startswith(b'%PDF')

    def test_private_trip_export_is_forbidden(self, client_for, trip, outsider):
        response = client_for(outsider).get(f'{_detail(trip)}export/pdf/')
        assert response.status_code == 403
