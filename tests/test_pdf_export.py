import datetime
from unittest import mock

import pytest
import requests
from django.core.cache import cache
from django.test import override_settings
from django.utils import timezone

from apps.trips.models import Trip, Waypoint
from apps.trips.services.pdf_export import export_filename, render_trip_pdf
from apps.trips.services.static_map import StaticMapClient, fetch_trip_map


def _loaded(trip):
    return Trip.objects.prefetch_related('participants__user', 'waypoints').get(pk=trip.pk)


@pytest.fixture
def itinerary(trip, make_waypoint):
    make_waypoint(
        trip,
        name='Fisherman’s Bastion',
        order_index=0,
        type=Waypoint.Type.ATTRACTION,
        address='Szentháromság tér, Budapest',
        planned_arrival=timezone.now(),
    )
    make_waypoint(trip, name='Gellért Baths', order_index=1, notes='Bring a towel')
    trip.comparison_notes = 'Comparison - Planned vs. Actual\n'
    trip.save()
    return _loaded(trip)


def test_render_produces_pdf_without_map(itinerary):
    document = render_trip_pdf(itinerary, map_fetcher=lambda waypoints: None)
    assert document.startswith(b'%PDF')


def test_map_failure_falls_back_to_placeholder(itinerary):
    def broken(waypoints):
        raise RuntimeError('map service exploded')

    document = render_trip_pdf(itinerary, map_fetcher=broken)
    assert document.startswith(b'%PDF')


def test_undecodable_map_image_falls_back_to_placeholder(itinerary):
    document = render_trip_pdf(itinerary, map_fetcher=lambda waypoints: b'definitely not a png')
    assert document.startswith(b'%PDF')


def test_map_fetcher_receives_waypoints_in_itinerary_order(itinerary):
    seen = []

    def fetcher(waypoints):
        seen.extend(w.name for w in waypoints)

    render_trip_pdf(itinerary, map_fetcher=fetcher)
    assert seen == ['Fisherman’s Bastion', 'Gellért Baths']


def test_trip_without_waypoints_skips_map(trip):
    fetcher = mock.Mock(return_value=None)
    document = render_trip_pdf(_loaded(trip), map_fetcher=fetcher)
    assert document.startswith(b'%PDF')
    fetcher.assert_not_called()


def test_export_filename(trip):
    with mock.patch('apps.trips.services.pdf_export.timezone.now') as now:
        now.return_value = datetime.datetime(2025, 3, 9, 12, 0, tzinfo=datetime.timezone.utc)
        assert export_filename(trip) == 'Trip_budapest-getaway_20250309.pdf'


class TestStaticMapClient:

    @pytest.fixture(autouse=True)
    def _clear_cache(self):
        cache.clear()
        yield
        cache.clear()

    def _points(self):
        return [mock.Mock(latitude=47.5, longitude=19.05), mock.Mock(latitude=47.51, longitude=19.03)]

    def test_returns_image_and_caches_it(self):
        response = mock.Mock(content=b'\x89PNG...', headers={'Content-Type': 'image/png'})
        client = StaticMapClient(base_url='https://maps.example.com/static', timeout=1, cache_ttl=60)

        with mock.patch('apps.trips.services.static_map.requests.get', return_value=response) as get:
            assert client.get_map_image(self._points()) == b'\x89PNG...'
            assert client.get_map_image(self._points()) == b'\x89PNG...'

        get.assert_called_once()

    def test_network_error_returns_none(self):
        client = StaticMapClient(base_url='https://maps.example.com/static', timeout=1, cache_ttl=60)

        with mock.patch(
            'apps.trips.services.static_map.requests.get',
            side_effect=requests.ConnectionError('down'),
        ):
            assert client.get_map_image(self._points()) is None

    def test_non_image_response_returns_none(self):
        response = mock.Mock(content=b'<html>', headers={'Content-Type': 'text/html; charset=utf-8'})
        client = StaticMapClient(base_url='https://maps.example.com/static', timeout=1, cache_ttl=60)

        with mock.patch('apps.trips.services.static_map.requests.get', return_value=response):
            assert client.get_map_image(self._points()) is None

    def test_no_waypoints_skips_request(self):
        client = StaticMapClient(base_url='https://maps.example.com/static', timeout=1, cache_ttl=60)
        with mock.patch('apps.trips.services.static_map.requests.get') as get:
            assert client.get_map_image([]) is None
        get.assert_not_called()

    @override_settings(STATIC_MAP_ENABLED=False)
    def test_disabled_setting_short_circuits(self):
        with mock.patch('apps.trips.services.static_map.requests.get') as get:
            assert fetch_trip_map(self._points()) is None
        get.assert_not_called()
