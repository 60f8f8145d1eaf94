"""
Management command to seed demo data for the Travel Planner.

Creates users, trips (with waypoints and participants) and a pending
invitation so the app and the admin dashboard both show meaningful data
when logged in.

Usage:
    python manage.py seed_demo_data
    python manage.py seed_demo_data --reset  # wipe existing demo data first
"""
from datetime import date, datetime, timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from apps.invitations.models import TripInvitation
from apps.trips.models import Trip, TripParticipant, Waypoint

User = get_user_model()

DEMO_PASSWORD = 'TravelPlanner2024Demo'

DEMO_USERS = [
    {'email': 'admin@travel-planner.app', 'first': 'Admin', 'last': 'User',    'is_staff': True, 'is_superuser': True},
    {'email': 'anna.kovacs@example.com',  'first': 'Anna',  'last': 'Kovacs',  'is_staff': False, 'is_superuser': False},
    {'email': 'bence.nagy@example.com',   'first': 'Bence', 'last': 'Nagy',    'is_staff': False, 'is_superuser': False},
    {'email': 'clara.weber@example.com',  'first': 'Clara', 'last': 'Weber',   'is_staff': False, 'is_superuser': False},
]

INVITEE_EMAIL = 'dora.szabo@example.com'


def _at(day, hour, minute=0):
    return timezone.make_aware(datetime(day.year, day.month, day.day, hour, minute))


class Command(BaseCommand):
    help = 'Seed demo data (users, trips, waypoints, participants, invitations) for the Travel Planner'

    def add_arguments(self, parser):
        parser.add_argument(
            '--reset',
            action='store_true',
            help='Delete all existing demo data before seeding',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['reset']:
            self._reset()

        users = self._seed_users()
        trips = self._seed_trips(users)
        self._seed_invitations(trips)

        self.stdout.write(self.style.SUCCESS('\nDemo data seeded successfully!\n'))
        self.stdout.write(f'Users created:    {len(users)}')
        self.stdout.write(f'Trips created:    {len(trips)}')
        self.stdout.write('\nDemo login credentials:')
        for u in DEMO_USERS:
            self.stdout.write(f'  {u["email"]} / {DEMO_PASSWORD}')

    # -----------------------------------------------------------------------

    def _reset(self):
        self.stdout.write('Resetting demo data...')
        emails = [u['email'] for u in DEMO_USERS]
        demo_users = User.objects.filter(email__in=emails)
        # Invitations and participants cascade with their trips
        Trip.objects.filter(created_by__in=demo_users).delete()
        TripInvitation.objects.filter(invited_by__in=demo_users).delete()
        demo_users.delete()
        self.stdout.write('  Reset complete.')

    def _seed_users(self):
        self.stdout.write('\nSeeding users...')
        users = {}
        for data in DEMO_USERS:
            email = data['email']
            user, created = User.objects.get_or_create(
                email=email,
                defaults={
                    'username': email.split('@')[0].replace('.', '_'),
                    'first_name': data['first'],
                    'last_name': data['last'],
                    'is_staff': data['is_staff'],
                    'is_superuser': data['is_superuser'],
                    'is_active': True,
                },
            )
            user.set_password(DEMO_PASSWORD)
            if not created:
                user.first_name = data['first']
                user.last_name = data['last']
                user.is_staff = data['is_staff']
                user.is_superuser = data['is_superuser']
            user.save()
            users[email] = user
            status = 'created' if created else 'updated'
            self.stdout.write(f'  {status}: {email}')
        return users

    def _seed_trips(self, users):
        self.stdout.write('\nSeeding trips...')
        anna = users['anna.kovacs@example.com']
        bence = users['bence.nagy@example.com']
        clara = users['clara.weber@example.com']
        trips = {}

        # Trip 1: finished, with actual timings recorded
        start = date.today() - timedelta(days=30)
        t1 = self._trip(
            anna,
            title='Lake Balaton Weekend',
            description='Wine, swimming and a lot of langos.',
            start_date=start,
            end_date=start + timedelta(days=2),
            status=Trip.Status.COMPLETED,
            is_public=True,
        )
        self._add_participant(t1, bence, TripParticipant.Role.ORGANIZER, can_edit=True)
        self._add_participant(t1, clara, TripParticipant.Role.MEMBER, can_edit=False)
        self._seed_waypoints(t1, [
            ('Tihany Abbey', Waypoint.Type.ATTRACTION, 46.9136, 17.8893,
             _at(start, 10), _at(start, 12), _at(start, 10, 30), _at(start, 12, 45)),
            ('Kistihany Restaurant', Waypoint.Type.RESTAURANT, 46.9150, 17.8800,
             _at(start, 13), _at(start, 14, 30), _at(start, 13, 15), None),
            ('Hotel Annabella', Waypoint.Type.ACCOMMODATION, 46.9574, 18.0390,
             _at(start, 16), None, None, None),
        ])
        trips['balaton'] = t1
        self.stdout.write(f'  created/updated trip: {t1.title}')

        # Trip 2: still being planned, private
        start = date.today() + timedelta(days=45)
        t2 = self._trip(
            bence,
            title='Vienna Christmas Markets',
            description='Punsch, pretzels and the Ringstrasse lights.',
            start_date=start,
            end_date=start + timedelta(days=3),
            status=Trip.Status.PLANNING,
            is_public=False,
        )
        self._add_participant(t2, anna, TripParticipant.Role.MEMBER, can_edit=True)
        self._seed_waypoints(t2, [
            ('OMV Hegyeshalom', Waypoint.Type.GAS_STATION, 47.9127, 17.1580,
             _at(start, 8), _at(start, 8, 20), None, None),
            ('Rathausplatz', Waypoint.Type.ATTRACTION, 48.2108, 16.3571,
             _at(start, 11), _at(start, 14), None, None),
            ('Parkhaus Museumsquartier', Waypoint.Type.PARKING, 48.2033, 16.3583,
             _at(start, 10, 30), _at(start, 18), None, None),
        ])
        trips['vienna'] = t2
        self.stdout.write(f'  created/updated trip: {t2.title}')

        return trips

    def _trip(self, creator, title, **fields):
        trip, _ = Trip.objects.get_or_create(title=title, created_by=creator, defaults=fields)
        TripParticipant.objects.get_or_create(
            trip=trip,
            user=creator,
            defaults={'role': TripParticipant.Role.OWNER, 'can_edit': True},
        )
        return trip

    def _add_participant(self, trip, user, role, can_edit):
        TripParticipant.objects.get_or_create(
            trip=trip,
            user=user,
            defaults={'role': role, 'can_edit': can_edit},
        )

    def _seed_waypoints(self, trip, waypoints):
        for order, (name, kind, lat, lng, planned_arr, planned_dep, actual_arr, actual_dep) in enumerate(waypoints):
            Waypoint.objects.get_or_create(
                trip=trip,
                name=name,
                defaults={
                    'type': kind,
                    'latitude': lat,
                    'longitude': lng,
                    'order_index': order,
                    'planned_arrival': planned_arr,
                    'planned_departure': planned_dep,
                    'actual_arrival': actual_arr,
                    'actual_departure': actual_dep,
                },
            )

    def _seed_invitations(self, trips):
        self.stdout.write('\nSeeding invitations...')
        vienna = trips['vienna']
        invitation, created = TripInvitation.objects.get_or_create(
            trip=vienna,
            invited_email=INVITEE_EMAIL,
            status=TripInvitation.Status.PENDING,
            defaults={
                'invited_by': vienna.created_by,
                'role': TripParticipant.Role.MEMBER,
                'can_edit': False,
                'message': 'Join us in Vienna!',
            },
        )
        self.stdout.write(f'  {"created" if created else "exists"}: {invitation.invited_email} -> {vienna.title}')
