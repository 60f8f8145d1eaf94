"""
Planned vs. actual itinerary comparison.

The report is a plain-text view over waypoint timings. It is stored on the
trip as ``comparison_notes`` purely as a cache for display and export, and
is rebuilt from the waypoints every time it is requested.
"""
import logging

from django.utils import timezone

logger = logging.getLogger(__name__)

REPORT_TITLE = 'Comparison - Planned vs. Actual'
TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M'


def hours_between(planned, actual):
    """Signed difference ``actual - planned`` in hours, rounded to one decimal."""
    return round((actual - planned).total_seconds() / 3600, 1)


def _format_ts(value):
    if timezone.is_aware(value):
        value = timezone.localtime(value)
    return value.strftime(TIMESTAMP_FORMAT)


def _timing_line(label, planned, actual):
    return (
        f'  {label}: planned {_format_ts(planned)}, '
        f'actual {_format_ts(actual)}, '
        f'difference {hours_between(planned, actual):.1f} h'
    )


def build_comparison_report(waypoints):
    """
    Build the comparison text for an iterable of waypoints.

    Waypoints without any actual timestamp are left out. Arrival and
    departure are compared independently, each only when both its planned
    and actual values are present.
    """
    lines = [REPORT_TITLE, '']

    measured = [w for w in waypoints if w.actual_arrival or w.actual_departure]
    if measured:
        lines.append('Waypoint timings:')
        for waypoint in measured:
            lines.append('')
            lines.append(f'{waypoint.name}:')
            if waypoint.planned_arrival and waypoint.actual_arrival:
                lines.append(_timing_line('Arrival', waypoint.planned_arrival, waypoint.actual_arrival))
            if waypoint.planned_departure and waypoint.actual_departure:
                lines.append(_timing_line('Departure', waypoint.planned_departure, waypoint.actual_departure))

    return '\n'.join(lines) + '\n'


def refresh_comparison_notes(trip):
    """
    Recompute and store ``trip.comparison_notes``.

    Returns the new report.
    """
    report = build_comparison_report(trip.waypoints.order_by('order_index', 'created_at', 'id'))
    trip.comparison_notes = report
    trip.save(update_fields=['comparison_notes', 'updated_at'])
    logger.info('Comparison notes refreshed for trip %s', trip.id)
    return report
