import datetime
from types import SimpleNamespace

from django.utils import timezone

from apps.trips.services.comparison import (
    REPORT_TITLE,
    build_comparison_report,
    hours_between,
    refresh_comparison_notes,
)


def _at(hour, minute=0):
    return timezone.make_aware(datetime.datetime(2025, 6, 1, hour, minute), datetime.timezone.utc)


def _waypoint(name, planned_arrival=None, actual_arrival=None, planned_departure=None, actual_departure=None):
    return SimpleNamespace(
        name=name,
        planned_arrival=planned_arrival,
        actual_arrival=actual_arrival,
        planned_departure=planned_departure,
        actual_departure=actual_departure,
    )


def test_hours_between_is_signed_and_rounded_to_one_decimal():
    assert hours_between(_at(10), _at(11, 30)) == 1.5
    assert hours_between(_at(10), _at(9, 40)) == -0.3
    assert hours_between(_at(10), _at(10, 4)) == 0.1


def test_report_lists_only_waypoints_with_actual_times():
    report = build_comparison_report([
        _waypoint('Museum', planned_arrival=_at(10), actual_arrival=_at(10, 30)),
        _waypoint('Lunch', planned_arrival=_at(12)),
    ])

    assert report.startswith(REPORT_TITLE)
    assert 'Museum:' in report
    assert 'difference 0.5 h' in report
    assert 'Lunch' not in report


def test_arrival_and_departure_are_compared_independently():
    report = build_comparison_report([
        _waypoint(
            'Castle',
            planned_arrival=_at(9),
            actual_arrival=_at(9, 30),
            actual_departure=_at(12),
        ),
    ])

    assert 'Arrival: planned' in report
    # No planned departure, so there is nothing to compare it with
    assert 'Departure' not in report


def test_departure_difference_can_be_negative():
    report = build_comparison_report([
        _waypoint('Hotel', planned_departure=_at(11), actual_departure=_at(9, 30)),
    ])
    assert 'Departure: planned' in report
    assert 'difference -1.5 h' in report


def test_report_without_measurements_only_has_title():
    report = build_comparison_report([_waypoint('Nowhere', planned_arrival=_at(8))])
    assert report == f'{REPORT_TITLE}\n\n'


def test_refresh_overwrites_stored_notes(trip, make_waypoint):
    trip.comparison_notes = 'stale report'
    trip.save()
    make_waypoint(trip, name='Bastion', order_index=1, planned_arrival=_at(10), actual_arrival=_at(11))
    make_waypoint(trip, name='Bridge', order_index=0, planned_arrival=_at(8), actual_arrival=_at(8, 6))

    report = refresh_comparison_notes(trip)

    trip.refresh_from_db()
    assert trip.comparison_notes == report
    assert 'stale report' not in report
    assert report.index('Bridge') < report.index('Bastion')
