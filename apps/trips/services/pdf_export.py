"""
PDF export of a trip itinerary.

Takes a fully loaded trip (participants with users, waypoints) and returns
the document as bytes. The optional map image degrades to a text
placeholder; it never aborts the export.
"""
import io
import logging

from django.utils import timezone
from django.utils.text import slugify
from fpdf import FPDF
from fpdf.enums import XPos, YPos

from apps.trips.services.static_map import fetch_trip_map

logger = logging.getLogger(__name__)

MAP_PLACEHOLDER = 'Map image unavailable.'
DATE_FORMAT = '%Y-%m-%d'
DATETIME_FORMAT = '%Y-%m-%d %H:%M'


def _latin1(text):
    # Core PDF fonts only cover latin-1
    return str(text).encode('latin-1', 'replace').decode('latin-1')


def _format_dt(value):
    if timezone.is_aware(value):
        value = timezone.localtime(value)
    return value.strftime(DATETIME_FORMAT)


class TripDocument(FPDF):

    def footer(self):
        self.set_y(-15)
        self.set_font('Helvetica', 'I', 8)
        self.cell(
            0, 10,
            f'Generated {timezone.now().strftime(DATETIME_FORMAT)} - page {self.page_no()}',
            align='C',
        )

    def heading(self, text, size=16):
        self.ln(4)
        self.set_font('Helvetica', 'B', size)
        self.cell(0, 10, _latin1(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.set_font('Helvetica', size=11)

    def line_text(self, text, indent=0, style='', size=11):
        self.set_font('Helvetica', style, size)
        self.set_x(self.l_margin + indent)
        self.multi_cell(0, 6, _latin1(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def labelled(self, label, value):
        self.set_font('Helvetica', 'B', 11)
        self.cell(self.get_string_width(label) + 2, 6, _latin1(label))
        self.set_font('Helvetica', size=11)
        self.multi_cell(0, 6, _latin1(value), new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def export_filename(trip):
    slug = slugify(trip.title) or 'trip'
    return f'Trip_{slug}_{timezone.now().strftime("%Y%m%d")}.pdf'


def render_trip_pdf(trip, map_fetcher=fetch_trip_map):
    """
    Render *trip* to PDF bytes.

    ``map_fetcher`` receives the ordered waypoints and returns image bytes
    or ``None``.
    """
    waypoints = sorted(trip.waypoints.all(), key=lambda w: (w.order_index, w.created_at, str(w.id)))
    participants = list(trip.participants.all())

    pdf = TripDocument(format='A4')
    pdf.set_margins(20, 20, 20)
    pdf.set_auto_page_break(auto=True, margin=20)
    pdf.add_page()

    pdf.set_font('Helvetica', 'B', 20)
    pdf.multi_cell(0, 10, _latin1(f'Itinerary: {trip.title}'), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(4)

    pdf.labelled('Description: ', trip.description or 'N/A')
    pdf.labelled('Start: ', trip.start_date.strftime(DATE_FORMAT))
    pdf.labelled('End: ', trip.end_date.strftime(DATE_FORMAT))
    pdf.labelled('Status: ', trip.get_status_display())

    if participants:
        pdf.heading('Participants')
        for participant in participants:
            pdf.line_text(f'- {participant.user.display_name} ({participant.get_role_display()})')

    if waypoints:
        pdf.heading('Map')
        _add_map(pdf, waypoints, map_fetcher)

        pdf.heading('Waypoints')
        for position, waypoint in enumerate(waypoints, start=1):
            pdf.line_text(f'{position}. {waypoint.name}', style='B')
            if waypoint.description:
                pdf.line_text(waypoint.description, indent=6)
            if waypoint.address:
                pdf.line_text(f'Address: {waypoint.address}', indent=6)
            pdf.line_text(f'Type: {waypoint.get_type_display()}', indent=6)
            if waypoint.planned_arrival:
                pdf.line_text(f'Planned arrival: {_format_dt(waypoint.planned_arrival)}', indent=6)
            if waypoint.planned_departure:
                pdf.line_text(f'Planned departure: {_format_dt(waypoint.planned_departure)}', indent=6)
            if waypoint.notes:
                pdf.line_text(f'Notes: {waypoint.notes}', indent=6)

    if trip.comparison_notes:
        pdf.heading('Comparison (planned vs. actual)')
        pdf.line_text(trip.comparison_notes, size=10)

    return bytes(pdf.output())


def _add_map(pdf, waypoints, map_fetcher):
    try:
        image = map_fetcher(waypoints)
        if image is None:
            pdf.line_text(MAP_PLACEHOLDER, style='I')
            return
        pdf.image(io.BytesIO(image), w=pdf.epw)
    except Exception as exc:
        logger.warning('Could not embed map image, using placeholder: %s', exc)
        pdf.line_text(MAP_PLACEHOLDER, style='I')
