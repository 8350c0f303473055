"""Distance between a searcher and a business.

A business location is resolved in priority order: explicit coordinates,
then coordinates embedded in its Google Maps link, then an approximate
point geocoded from its postal code (Nominatim). Results are cached per
(user location, business location) for an hour in a bounded TTL cache, and
concurrent lookups of the same key share a single computation.
"""

import logging
import math
import re
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass

import requests
from cachetools import TTLCache
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371
KM_TO_MILES = 0.621371
KM_TO_NAUTICAL_MILES = 0.539957

MAP_LINK_COORDS_RE = re.compile(
    r'@(-?\d+\.\d+),(-?\d+\.\d+)|q=(-?\d+\.\d+),(-?\d+\.\d+)'
)

NOMINATIM_URL = 'https://nominatim.openstreetmap.org/search'
NOMINATIM_TIMEOUT = 10
USER_AGENT = 'Hopaba/1.0 (support@chowkashi.com)'

DISTANCE_CACHE_TTL = 60 * 60
GEOCODE_CACHE_TTL = 24 * 60 * 60
USER_MOVE_THRESHOLD_KM = 5
MAX_DISTANCE_ENTRIES = 10_000
MAX_GEOCODED_POSTAL_CODES = 5_000
MAX_TRACKED_VIEWERS = 10_000


def calculate_distance(lat1, lon1, lat2, lon2, unit='K'):
    """Great-circle distance (Haversine), rounded to one decimal.

    unit: 'K' kilometres, 'M' statute miles, 'N' nautical miles.
    """
    if lat1 == lat2 and lon1 == lon2:
        return 0

    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = math.sin(delta_lat / 2) ** 2 + \
        math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    km = EARTH_RADIUS_KM * c

    if unit == 'M':
        km *= KM_TO_MILES
    elif unit == 'N':
        km *= KM_TO_NAUTICAL_MILES

    return round(km, 1)


def extract_coordinates_from_map_link(map_link):
    """Pull (lat, lng) out of '.../@12.97,77.59,...' or '...?q=12.97,77.59' links."""
    if not map_link:
        return None
    match = MAP_LINK_COORDS_RE.search(map_link)
    if not match:
        return None
    lat = match.group(1) or match.group(3)
    lng = match.group(2) or match.group(4)
    return float(lat), float(lng)


def format_distance(distance_km, approximate=False):
    """'850m away' under a kilometre, '3.2km away' otherwise; '~' marks estimates."""
    if distance_km is None:
        return None
    prefix = '~' if approximate else ''
    if distance_km < 1:
        return f'{prefix}{round(distance_km * 1000)}m away'
    return f'{prefix}{distance_km:.1f}km away'


@dataclass(frozen=True)
class DistanceResult:
    distance: float
    approximate: bool

    @property
    def text(self):
        return format_distance(self.distance, self.approximate)


class GeocodingError(Exception):
    """Transient failure talking to the geocoder."""


@retry(
    retry=retry_if_exception_type(GeocodingError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)
def geocode_postal_code(postal_code, country='India'):
    """Resolve a postal code to (lat, lng) via Nominatim, or None if unknown."""
    try:
        response = requests.get(
            NOMINATIM_URL,
            params={'format': 'json', 'q': f'{postal_code}, {country}', 'limit': 1},
            headers={'User-Agent': USER_AGENT},
            timeout=NOMINATIM_TIMEOUT,
        )
    except (requests.ConnectionError, requests.Timeout) as e:
        raise GeocodingError(str(e)) from e

    if response.status_code == 429 or response.status_code >= 500:
        raise GeocodingError(f'Geocoder returned {response.status_code}')
    if response.status_code != 200:
        logger.warning(f'[GEOCODE] Unexpected status {response.status_code} for {postal_code}')
        return None

    results = response.json()
    if not results:
        return None
    return float(results[0]['lat']), float(results[0]['lon'])


def business_location_key(business):
    """Cache key describing every location hint a business carries."""
    coords = ''
    if business.latitude is not None and business.longitude is not None:
        coords = f'{business.latitude},{business.longitude}'
    return (
        f'coords:{coords}|postal:{business.postal_code or ""}'
        f'|map:{business.map_link or ""}|id:{business.id}'
    )


def user_location_key(lat, lng):
    return f'{lat:.6f},{lng:.6f}'


_MISSING = object()


class DistanceService:
    """TTL cache around business distance lookups.

    geocoder is injectable so tests (and callers that disable network
    geocoding) can pass their own callable, or None to skip postal codes.

    Each viewer (a user id or client address) has its own last known
    location and the set of cache keys it looked up; when that viewer
    moves more than 5 km only its own entries are dropped.
    """

    def __init__(self, geocoder=geocode_postal_code, ttl=DISTANCE_CACHE_TTL,
                 geocode_ttl=GEOCODE_CACHE_TTL, clock=time.monotonic,
                 max_entries=MAX_DISTANCE_ENTRIES):
        self._geocoder = geocoder
        self._lock = threading.Lock()
        self._cache = TTLCache(maxsize=max_entries, ttl=ttl, timer=clock)
        self._geocode_cache = TTLCache(maxsize=MAX_GEOCODED_POSTAL_CODES, ttl=geocode_ttl, timer=clock)
        self._viewers = TTLCache(maxsize=MAX_TRACKED_VIEWERS, ttl=ttl, timer=clock)
        self._in_flight = {}
        self.hits = 0
        self.misses = 0

    # -- cache management -------------------------------------------------

    def clear(self):
        with self._lock:
            self._cache.clear()
            self._geocode_cache.clear()
            self._viewers.clear()
            self.hits = 0
            self.misses = 0

    def stats(self):
        with self._lock:
            self._cache.expire()
            self._geocode_cache.expire()
            return {
                'entries': len(self._cache),
                'geocoded_postal_codes': len(self._geocode_cache),
                'in_flight': len(self._in_flight),
                'hits': self.hits,
                'misses': self.misses,
            }

    def _viewer(self, viewer):
        state = self._viewers.get(viewer)
        if state is None:
            state = {'location': None, 'keys': set()}
        # re-set to refresh the viewer's TTL
        self._viewers[viewer] = state
        return state

    def update_user_location(self, viewer, lat, lng):
        """Drop the viewer's cached distances once it has moved more than 5 km."""
        with self._lock:
            state = self._viewer(viewer)
            previous = state['location']
            state['location'] = (lat, lng)
            if previous and calculate_distance(previous[0], previous[1], lat, lng) > USER_MOVE_THRESHOLD_KM:
                logger.info(f'[DISTANCE] Viewer {viewer} moved more than 5 km, dropping {len(state["keys"])} entries')
                for key in state['keys']:
                    self._cache.pop(key, None)
                state['keys'] = set()

    # -- lookups ----------------------------------------------------------

    def _geocode(self, postal_code):
        if not postal_code or self._geocoder is None:
            return None
        with self._lock:
            coords = self._geocode_cache.get(postal_code, _MISSING)
        if coords is not _MISSING:
            return coords
        try:
            coords = self._geocoder(postal_code)
        except Exception as e:
            logger.warning(f'[DISTANCE] Geocoding {postal_code} failed: {e}')
            return None
        with self._lock:
            self._geocode_cache[postal_code] = coords
        return coords

    def resolve_location(self, business, geocode=True):
        """Return ((lat, lng), approximate) for a business, or (None, False)."""
        if business.latitude is not None and business.longitude is not None:
            return (business.latitude, business.longitude), False
        coords = extract_coordinates_from_map_link(business.map_link)
        if coords:
            return coords, False
        coords = self._geocode(business.postal_code) if geocode else None
        if coords:
            return coords, True
        return None, False

    def _compute(self, user_lat, user_lng, business, geocode):
        coords, approximate = self.resolve_location(business, geocode)
        if coords is None:
            return None
        return DistanceResult(
            distance=calculate_distance(user_lat, user_lng, coords[0], coords[1]),
            approximate=approximate,
        )

    def get_distance(self, user_lat, user_lng, business, geocode=True, viewer=None):
        """Distance from the user to a business, or None if it has no location.

        geocode=False skips the postal code fallback entirely.
        """
        key = (
            f'{user_location_key(user_lat, user_lng)}->{business_location_key(business)}'
            f'|geocode:{int(bool(geocode))}'
        )

        with self._lock:
            if viewer is not None:
                self._viewer(viewer)['keys'].add(key)
            result = self._cache.get(key, _MISSING)
            if result is not _MISSING:
                self.hits += 1
                return result
            self.misses += 1
            future = self._in_flight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._in_flight[key] = future

        if not owner:
            return future.result()

        try:
            result = self._compute(user_lat, user_lng, business, geocode)
        except Exception as e:
            with self._lock:
                self._in_flight.pop(key, None)
            future.set_exception(e)
            raise

        with self._lock:
            self._cache[key] = result
            self._in_flight.pop(key, None)
        future.set_result(result)
        return result


distance_service = DistanceService()
