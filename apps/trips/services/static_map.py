"""
Static map image lookup for trip exports.

Images are fetched from a third-party static map endpoint and cached using
the Django cache framework so repeated exports of the same itinerary avoid
external HTTP calls. The map is optional decoration: every failure is
logged and reported as ``None`` so callers can fall back to a placeholder.
"""
import hashlib
import logging

import requests
from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)

MAP_CACHE_PREFIX = 'static_map'
MAP_SIZE = '640x360'
MAX_MARKERS = 50
IMAGE_CONTENT_TYPES = ('image/png', 'image/jpeg', 'image/gif')


class StaticMapClient:
    """
    Fetches a PNG/JPEG map with one marker per waypoint.
    """

    def __init__(self, base_url=None, timeout=None, cache_ttl=None):
        self.base_url = base_url or settings.STATIC_MAP_URL
        self.timeout = timeout if timeout is not None else settings.STATIC_MAP_TIMEOUT
        self.cache_ttl = cache_ttl if cache_ttl is not None else settings.STATIC_MAP_CACHE_TTL

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_map_image(self, waypoints):
        """
        Return image bytes for *waypoints*, or ``None`` when unavailable.

        Parameters
        ----------
        waypoints : iterable
            Objects exposing ``latitude`` and ``longitude``, in itinerary
            order.
        """
        points = [(w.latitude, w.longitude) for w in waypoints][:MAX_MARKERS]
        if not points:
            return None

        params = self._build_params(points)
        cache_key = self._cache_key(params)
        cached = cache.get(cache_key)
        if cached is not None:
            return cached

        image = self._fetch(params)
        if image is not None:
            cache.set(cache_key, image, self.cache_ttl)
        return image

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _build_params(points):
        center_lat = sum(lat for lat, _ in points) / len(points)
        center_lng = sum(lng for _, lng in points) / len(points)
        markers = '|'.join(f'{lat:.5f},{lng:.5f},red-pushpin' for lat, lng in points)
        return {
            'center': f'{center_lat:.5f},{center_lng:.5f}',
            'zoom': _zoom_for(points),
            'size': MAP_SIZE,
            'markers': markers,
        }

    def _cache_key(self, params):
        digest = hashlib.sha256(
            f'{self.base_url}?{sorted(params.items())}'.encode('utf-8')
        ).hexdigest()
        return f'{MAP_CACHE_PREFIX}:{digest}'

    def _fetch(self, params):
        try:
            response = requests.get(self.base_url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning('Static map request failed: %s', exc)
            return None

        content_type = response.headers.get('Content-Type', '').split(';')[0].strip()
        if content_type not in IMAGE_CONTENT_TYPES:
            logger.warning('Static map returned unexpected content type %r', content_type)
            return None

        return response.content


def _zoom_for(points):
    """Rough zoom level that fits every marker into the frame."""
    lats = [lat for lat, _ in points]
    lngs = [lng for _, lng in points]
    span = max(max(lats) - min(lats), max(lngs) - min(lngs))
    if span < 0.05:
        return 13
    if span < 0.5:
        return 10
    if span < 2:
        return 8
    if span < 10:
        return 6
    if span < 40:
        return 4
    return 2


def fetch_trip_map(waypoints):
    """Convenience wrapper honouring ``STATIC_MAP_ENABLED``."""
    if not settings.STATIC_MAP_ENABLED:
        return None
    return StaticMapClient().get_map_image(waypoints)
