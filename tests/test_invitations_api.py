from unittest import mock

import pytest
from django.db import IntegrityError

from apps.invitations.models import TripInvitation
from apps.invitations.services import workflow
from apps.trips.models import TripParticipant

pytestmark = pytest.mark.django_db

Role = TripParticipant.Role
Status = TripInvitation.Status


def _trip_url(trip):
    return f'/api/v1/invitations/trip/{trip.id}/'


def _respond_url(invitation_id):
    return f'/api/v1/invitations/{invitation_id}/respond/'


def _cancel_url(invitation_id):
    return f'/api/v1/invitations/{invitation_id}/'


def _invite(client, trip, email, **extra):
    payload = {'invitedEmail': email, 'role': Role.MEMBER, 'canEdit': False}
    payload.update(extra)
    return client.post(_trip_url(trip), payload, format='json')


class TestCreateInvitation:

    def test_creator_invites_by_email(self, client_for, trip, creator):
        response = _invite(client_for(creator), trip, 'Guest@Example.com', message='Come along!')

        assert response.status_code == 201
        data = response.data['data']
        assert data['status'] == Status.PENDING
        assert data['invitedEmail'] == 'guest@example.com'
        assert data['tripTitle'] == 'Budapest Getaway'
        assert data['invitedByName'] == 'Ada Creator'
        assert data['message'] == 'Come along!'

    def test_organizer_can_invite(self, client_for, trip, make_user, add_participant):
        organizer = make_user()
        add_participant(trip, organizer, role=Role.ORGANIZER)

        assert _invite(client_for(organizer), trip, 'guest@example.com').status_code == 201

    def test_organizer_without_edit_rights_cannot_offer_edit(self, client_for, trip, make_user, add_participant):
        organizer = make_user()
        add_participant(trip, organizer, role=Role.ORGANIZER)

        response = _invite(client_for(organizer), trip, 'guest@example.com', canEdit=True)

        assert response.status_code == 403
        assert not TripInvitation.objects.exists()

    def test_member_with_edit_flag_cannot_invite(self, client_for, trip, make_user, add_participant):
        editor = make_user()
        add_participant(trip, editor, can_edit=True)

        response = _invite(client_for(editor), trip, 'guest@example.com')

        assert response.status_code == 403
        assert not TripInvitation.objects.exists()

    def test_unknown_trip_is_404(self, client_for, outsider):
        response = client_for(outsider).post(
            '/api/v1/invitations/trip/00000000-0000-0000-0000-000000000000/',
            {'invitedEmail': 'guest@example.com'},
            format='json',
        )
        assert response.status_code == 404

    def test_second_pending_invitation_is_conflict(self, client_for, trip, creator):
        client = client_for(creator)
        assert _invite(client, trip, 'guest@example.com').status_code == 201

        response = _invite(client, trip, 'GUEST@example.com')

        assert response.status_code == 409
        assert TripInvitation.objects.filter(trip=trip, status=Status.PENDING).count() == 1

    def test_inviting_existing_participant_is_conflict(self, client_for, trip, creator, make_user, add_participant):
        add_participant(trip, make_user(email='member@example.com'))

        response = _invite(client_for(creator), trip, 'member@example.com')

        assert response.status_code == 409

    def test_reinvite_after_decline_is_allowed(self, client_for, trip, creator, make_user):
        guest = make_user(email='guest@example.com')
        first = _invite(client_for(creator), trip, 'guest@example.com').data['data']
        client_for(guest).post(_respond_url(first['id']), {'status': Status.DECLINED}, format='json')

        response = _invite(client_for(creator), trip, 'guest@example.com')

        assert response.status_code == 201

    def test_constraint_violation_is_reported_as_conflict(self, trip, creator):
        # Simulates a concurrent insert slipping past the pre-check
        with mock.patch.object(TripInvitation.objects, 'create', side_effect=IntegrityError):
            with pytest.raises(workflow.Conflict):
                workflow.create_invitation(trip, creator, 'racer@example.com')

    def test_trip_invitations_list_requires_manage_rights(self, client_for, trip, creator, make_user, add_participant):
        member = make_user()
        add_participant(trip, member)
        _invite(client_for(creator), trip, 'guest@example.com')

        assert client_for(member).get(_trip_url(trip)).status_code == 403

        response = client_for(creator).get(_trip_url(trip))
        assert response.status_code == 200
        assert [i['invitedEmail'] for i in response.data['data']] == ['guest@example.com']


class TestMyInvitations:

    def test_lists_only_pending_invitations_for_my_email(self, client_for, make_user, make_trip, creator):
        guest = make_user(email='guest@example.com')
        t1 = make_trip(creator, title='One')
        t2 = make_trip(creator, title='Two')
        TripInvitation.objects.create(trip=t1, invited_email='guest@example.com', invited_by=creator)
        TripInvitation.objects.create(
            trip=t2, invited_email='guest@example.com', invited_by=creator, status=Status.CANCELLED,
        )
        TripInvitation.objects.create(trip=t2, invited_email='someone@example.com', invited_by=creator)

        response = client_for(guest).get('/api/v1/invitations/my/')

        assert response.status_code == 200
        assert [i['tripTitle'] for i in response.data['data']] == ['One']


class TestRespond:

    @pytest.fixture
    def invitation(self, trip, creator):
        return TripInvitation.objects.create(
            trip=trip,
            invited_email='guest@example.com',
            invited_by=creator,
            role=Role.ORGANIZER,
            can_edit=True,
        )

    def test_accept_creates_participant_with_invited_privileges(self, client_for, invitation, make_user):
        guest = make_user(email='Guest@Example.com')

        response = client_for(guest).post(_respond_url(invitation.id), {'status': Status.ACCEPTED}, format='json')

        assert response.status_code == 200
        invitation.refresh_from_db()
        assert invitation.status == Status.ACCEPTED
        assert invitation.responded_at is not None
        assert invitation.invited_user == guest
        row = TripParticipant.objects.get(trip=invitation.trip, user=guest)
        assert row.role == Role.ORGANIZER
        assert row.can_edit is True

    def test_accept_when_already_participant_keeps_single_row(self, client_for, invitation, make_user, add_participant):
        guest = make_user(email='guest@example.com')
        add_participant(invitation.trip, guest, role=Role.MEMBER)

        response = client_for(guest).post(_respond_url(invitation.id), {'status': Status.ACCEPTED}, format='json')

        assert response.status_code == 200
        invitation.refresh_from_db()
        assert invitation.status == Status.ACCEPTED
        rows = TripParticipant.objects.filter(trip=invitation.trip, user=guest)
        assert rows.count() == 1
        assert rows.get().role == Role.MEMBER

    def test_concurrent_join_during_accept_is_treated_as_joined(self, client_for, invitation, make_user):
        guest = make_user(email='guest@example.com')

        with mock.patch.object(TripParticipant.objects, 'create', side_effect=IntegrityError):
            response = client_for(guest).post(
                _respond_url(invitation.id), {'status': Status.ACCEPTED}, format='json',
            )

        assert response.status_code == 200
        invitation.refresh_from_db()
        assert invitation.status == Status.ACCEPTED

    def test_decline_adds_nobody(self, client_for, invitation, make_user):
        guest = make_user(email='guest@example.com')

        response = client_for(guest).post(_respond_url(invitation.id), {'status': Status.DECLINED}, format='json')

        assert response.status_code == 200
        invitation.refresh_from_db()
        assert invitation.status == Status.DECLINED
        assert invitation.responded_at is not None
        assert invitation.invited_user == guest
        assert not TripParticipant.objects.filter(trip=invitation.trip, user=guest).exists()

    def test_other_email_is_forbidden(self, client_for, invitation, creator):
        response = client_for(creator).post(_respond_url(invitation.id), {'status': Status.ACCEPTED}, format='json')

        assert response.status_code == 403
        invitation.refresh_from_db()
        assert invitation.status == Status.PENDING

    def test_responding_twice_is_conflict(self, client_for, invitation, make_user):
        client = client_for(make_user(email='guest@example.com'))
        client.post(_respond_url(invitation.id), {'status': Status.DECLINED}, format='json')

        response = client.post(_respond_url(invitation.id), {'status': Status.ACCEPTED}, format='json')

        assert response.status_code == 409
        invitation.refresh_from_db()
        assert invitation.status == Status.DECLINED

    @pytest.mark.parametrize('value', [Status.PENDING, Status.CANCELLED])
    def test_only_accept_or_decline_are_valid(self, client_for, invitation, make_user, value):
        guest = make_user(email='guest@example.com')

        response = client_for(guest).post(_respond_url(invitation.id), {'status': value}, format='json')

        assert response.status_code == 400
        invitation.refresh_from_db()
        assert invitation.status == Status.PENDING

    @pytest.mark.parametrize('body', [{'status': 9}, {}])
    def test_stranger_with_malformed_body_is_forbidden(self, client_for, invitation, outsider, body):
        response = client_for(outsider).post(_respond_url(invitation.id), body, format='json')

        assert response.status_code == 403
        invitation.refresh_from_db()
        assert invitation.status == Status.PENDING

    def test_answered_invitation_with_malformed_body_is_conflict(self, client_for, invitation, make_user):
        invitation.status = Status.DECLINED
        invitation.save()

        response = client_for(make_user(email='guest@example.com')).post(
            _respond_url(invitation.id), {}, format='json',
        )

        assert response.status_code == 409

    def test_missing_status_on_pending_invitation_is_validation_error(self, client_for, invitation, make_user):
        response = client_for(make_user(email='guest@example.com')).post(
            _respond_url(invitation.id), {}, format='json',
        )

        assert response.status_code == 400
        assert 'status' in response.data['error']['details']

    def test_unknown_invitation_is_404(self, client_for, outsider):
        response = client_for(outsider).post(
            _respond_url('00000000-0000-0000-0000-000000000000'),
            {'status': Status.ACCEPTED},
            format='json',
        )
        assert response.status_code == 404


class TestCancel:

    @pytest.fixture
    def organizer(self, trip, make_user, add_participant):
        user = make_user()
        add_participant(trip, user, role=Role.ORGANIZER)
        return user

    @pytest.fixture
    def invitation(self, trip, organizer):
        return TripInvitation.objects.create(trip=trip, invited_email='guest@example.com', invited_by=organizer)

    def test_inviter_cancels(self, client_for, invitation, organizer):
        response = client_for(organizer).delete(_cancel_url(invitation.id))

        assert response.status_code == 200
        invitation.refresh_from_db()
        assert invitation.status == Status.CANCELLED

    def test_trip_creator_cancels_someone_elses_invitation(self, client_for, invitation, creator):
        assert client_for(creator).delete(_cancel_url(invitation.id)).status_code == 200

    def test_other_organizer_cannot_cancel(self, client_for, trip, invitation, make_user, add_participant):
        other = make_user()
        add_participant(trip, other, role=Role.ORGANIZER)

        response = client_for(other).delete(_cancel_url(invitation.id))

        assert response.status_code == 403
        invitation.refresh_from_db()
        assert invitation.status == Status.PENDING

    def test_cannot_cancel_answered_invitation(self, client_for, invitation, organizer):
        invitation.status = Status.ACCEPTED
        invitation.save()

        response = client_for(organizer).delete(_cancel_url(invitation.id))

        assert response.status_code == 409
        invitation.refresh_from_db()
        assert invitation.status == Status.ACCEPTED


def test_invite_accept_and_promote_scenario(client_for, make_user, creator):
    """A creates a private trip, invites B as a plain member, B accepts, A grants edit."""
    a = client_for(creator)
    b_user = make_user(email='b@x.com')
    b = client_for(b_user)

    trip_id = a.post('/api/v1/trips/', {
        'title': 'T', 'startDate': '2025-08-01', 'endDate': '2025-08-03',
    }, format='json').data['data']['id']

    invitation = a.post(
        f'/api/v1/invitations/trip/{trip_id}/',
        {'invitedEmail': 'b@x.com', 'role': Role.MEMBER, 'canEdit': False},
        format='json',
    ).data['data']
    assert b.post(_respond_url(invitation['id']), {'status': Status.ACCEPTED}, format='json').status_code == 200

    # B can view but neither edit nor invite
    assert b.get(f'/api/v1/trips/{trip_id}/').status_code == 200
    waypoint = {'name': 'Stop', 'latitude': 1.0, 'longitude': 2.0}
    assert b.post(f'/api/v1/trips/{trip_id}/waypoints/', waypoint, format='json').status_code == 403
    assert b.post(
        f'/api/v1/invitations/trip/{trip_id}/', {'invitedEmail': 'c@x.com'}, format='json',
    ).status_code == 403

    participant = TripParticipant.objects.get(trip_id=trip_id, user=b_user)
    assert participant.role == Role.MEMBER
    assert participant.can_edit is False

    response = a.patch(
        f'/api/v1/trips/{trip_id}/participants/{participant.id}/', {'canEdit': True}, format='json',
    )
    assert response.status_code == 200

    # Editing is now allowed, inviting still is not
    assert b.post(f'/api/v1/trips/{trip_id}/waypoints/', waypoint, format='json').status_code == 201
    assert b.post(
        f'/api/v1/invitations/trip/{trip_id}/', {'invitedEmail': 'c@x.com'}, format='json',
    ).status_code == 403
