"""Cafe discovery: distance, open status, filtering and ranking.

Distances are in miles throughout (Earth radius 3958.8 mi).
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging
import math

from cafehop.core.enums import SortBy
from cafehop.core.errors import InvalidLocationError
from cafehop.utils.search import matches_query

logger = logging.getLogger(__name__)

EARTH_RADIUS_MILES = 3958.8

WEEKDAYS = {
    'monday': 1, 'tuesday': 2, 'wednesday': 3, 'thursday': 4,
    'friday': 5, 'saturday': 6, 'sunday': 7,
}


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def is_valid(self) -> bool:
        return (math.isfinite(self.latitude) and math.isfinite(self.longitude)
                and -90 <= self.latitude <= 90 and -180 <= self.longitude <= 180)


@dataclass(frozen=True)
class DayHours:
    open_time: str = '00:00'
    close_time: str = '00:00'
    is_closed: bool = False


@dataclass(frozen=True)
class LocalTime:
    weekday: int  # 1=Monday..7=Sunday
    time: str     # HH:MM, seconds are ignored

    @classmethod
    def from_datetime(cls, moment: datetime) -> 'LocalTime':
        return cls(weekday=moment.isoweekday(), time=moment.strftime('%H:%M'))


@dataclass(frozen=True)
class CafeSummary:
    id: str
    name: str
    address: str
    coordinate: Coordinate
    rating: float = 0.0
    hours: Dict[int, DayHours] = field(default_factory=dict, hash=False)
    is_active: bool = True
    tags: Tuple[str, ...] = ()
    catalog_id: Optional[str] = None


@dataclass(frozen=True)
class RankedCafe:
    cafe: CafeSummary
    distance: float  # miles
    is_open: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.cafe.id,
            'name': self.cafe.name,
            'address': self.cafe.address,
            'rating': self.cafe.rating,
            'tags': list(self.cafe.tags),
            'latitude': self.cafe.coordinate.latitude,
            'longitude': self.cafe.coordinate.longitude,
            'distance': round(self.distance, 2),
            'distance_text': format_distance(self.distance),
            'is_open': self.is_open,
        }


@dataclass(frozen=True)
class DiscoveryFilters:
    max_distance: Optional[float] = None
    open_only: bool = False
    sort_by: SortBy = SortBy.DISTANCE
    query: Optional[str] = None


def _minutes(hhmm: str) -> int:
    # Backends send either HH:MM or HH:MM:SS; seconds don't affect open status
    parts = str(hhmm).strip().split(':')
    if len(parts) not in (2, 3):
        raise ValueError(f"Expected HH:MM, got {hhmm!r}")
    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours <= 24 and 0 <= minutes < 60):
        raise ValueError(f"Time out of range: {hhmm!r}")
    return hours * 60 + minutes


def format_distance(miles: float) -> str:
    return f"{miles:.1f} mi"


def parse_hours(rows: Iterable[Dict[str, Any]]) -> Dict[int, DayHours]:
    """Parse weekly hours rows keyed by day_of_week (1-7 or day name)"""
    hours = {}
    for row in rows:
        day = row['day_of_week']
        if isinstance(day, str) and not day.isdigit():
            day = WEEKDAYS[day.lower()]
        hours[int(day)] = DayHours(
            open_time=row.get('open_time') or '00:00',
            close_time=row.get('close_time') or '00:00',
            is_closed=bool(row.get('is_closed', False)),
        )
    return hours


def _parse_degrees(value: Any) -> float:
    # Unparsable values become NaN so ranking drops the cafe instead of failing
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def cafe_from_record(row: Dict[str, Any]) -> CafeSummary:
    """Build a CafeSummary from a backend cafe row; lat/lng arrive as strings"""
    return CafeSummary(
        id=str(row['id']),
        name=row['name'],
        address=row.get('address', ''),
        coordinate=Coordinate(_parse_degrees(row.get('latitude')), _parse_degrees(row.get('longitude'))),
        rating=float(row.get('rating') or 0.0),
        hours=parse_hours(row.get('hours') or []),
        is_active=bool(row.get('is_active', True)),
        tags=tuple(row.get('tags') or ()),
        catalog_id=row.get('catalog_id'),
    )


class DiscoveryRanker:
    """Ranks cafes around a user. Distances are in miles."""

    def __init__(self, radius: float = EARTH_RADIUS_MILES):
        self.radius = radius

    def compute_distance(self, user: Coordinate, cafe: Coordinate) -> float:
        """Great-circle (haversine) distance"""
        lat1 = math.radians(user.latitude)
        lat2 = math.radians(cafe.latitude)
        delta_lat = math.radians(cafe.latitude - user.latitude)
        delta_lon = math.radians(cafe.longitude - user.longitude)

        a = (math.sin(delta_lat / 2) ** 2 +
             math.cos(lat1) * math.cos(lat2) * math.sin(delta_lon / 2) ** 2)
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
        return self.radius * c

    def is_open_now(self, cafe: CafeSummary, now: LocalTime) -> bool:
        """Open iff opening <= now <= closing on today's hours entry"""
        day = cafe.hours.get(now.weekday)
        if day is None or day.is_closed:
            return False
        current = _minutes(now.time)
        return _minutes(day.open_time) <= current <= _minutes(day.close_time)

    def rank(self, cafes: Iterable[CafeSummary], user: Coordinate, now: LocalTime,
             filters: Optional[DiscoveryFilters] = None) -> List[RankedCafe]:
        filters = filters or DiscoveryFilters()
        if not user.is_valid():
            raise InvalidLocationError(f"Invalid user location: {user.latitude}, {user.longitude}")

        annotated = []
        for cafe in cafes:
            if not cafe.coordinate.is_valid():
                logger.warning(f"Skipping cafe {cafe.id}: bad coordinates {cafe.coordinate}")
                continue
            try:
                is_open = self.is_open_now(cafe, now)
            except ValueError as e:
                logger.warning(f"Skipping cafe {cafe.id}: bad opening hours ({e})")
                continue
            annotated.append(RankedCafe(cafe, self.compute_distance(user, cafe.coordinate), is_open))

        results = [
            r for r in annotated
            if r.cafe.is_active
            and matches_query(filters.query, [r.cafe.name, r.cafe.address, *r.cafe.tags])
        ]
        if filters.open_only:
            results = [r for r in results if r.is_open]
        if filters.max_distance is not None:
            results = [r for r in results if r.distance <= filters.max_distance]

        # sorted() is stable, equal keys keep input order
        if filters.sort_by == SortBy.RATING:
            results = sorted(results, key=lambda r: -r.cafe.rating)
        else:
            results = sorted(results, key=lambda r: r.distance)

        logger.info(f"Ranked {len(results)} of {len(annotated)} cafes by {filters.sort_by.value}")
        return results
