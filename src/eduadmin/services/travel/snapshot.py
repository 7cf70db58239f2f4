"""Route map snapshots rendered by the Kakao Static Map API."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional, Sequence

import httpx

from ...config import settings
from ...errors import SnapshotGenerationError
from ...models.domain import HOME_STOP_NAME, Coordinate, RouteStop
from ...persistence.filesystem import FileStorage
from ..geospatial import COORDINATE_QUANTUM, bounding_box

logger = logging.getLogger(__name__)

# (span threshold in degrees, zoom level); first threshold exceeded wins
ZOOM_LEVELS: tuple[tuple[Decimal, int], ...] = (
    (Decimal("0.5"), 5),
    (Decimal("0.2"), 6),
    (Decimal("0.1"), 7),
    (Decimal("0.05"), 8),
    (Decimal("0.02"), 9),
    (Decimal("0.01"), 10),
)
MAX_ZOOM_LEVEL = 11


@dataclass(frozen=True, slots=True)
class MapPoint:
    lat: Decimal
    lng: Decimal
    name: str
    address: Optional[str] = None


def build_map_points(
    home: Coordinate,
    address_label: str,
    stops: Sequence[RouteStop],
    return_home: bool,
) -> list[MapPoint]:
    points = [MapPoint(home.latitude, home.longitude, HOME_STOP_NAME, address_label)]
    points.extend(
        MapPoint(stop.coordinate.latitude, stop.coordinate.longitude, stop.name, stop.address) for stop in stops
    )
    if return_home and stops:
        points.append(MapPoint(home.latitude, home.longitude, HOME_STOP_NAME, address_label))
    return points


def zoom_level(span_degrees: Decimal) -> int:
    for threshold, level in ZOOM_LEVELS:
        if span_degrees > threshold:
            return level
    return MAX_ZOOM_LEVEL


def build_static_map_params(points: Sequence[MapPoint], width: int, height: int) -> dict[str, str]:
    """Query parameters for a static map centred on the bounds of ``points``."""

    min_lat, min_lng, max_lat, max_lng = bounding_box([(point.lat, point.lng) for point in points])
    two = Decimal(2)
    center_lat = ((min_lat + max_lat) / two).quantize(COORDINATE_QUANTUM, rounding=ROUND_HALF_UP)
    center_lng = ((min_lng + max_lng) / two).quantize(COORDINATE_QUANTUM, rounding=ROUND_HALF_UP)
    span = max(max_lat - min_lat, max_lng - min_lng)

    return {
        # Kakao expects lng,lat for the centre but lat,lng for markers and path
        "center": f"{center_lng},{center_lat}",
        "width": str(width),
        "height": str(height),
        "level": str(zoom_level(span)),
        "markers": "|".join(f"{point.lat},{point.lng}" for point in points),
        "path": " ".join(f"{point.lat},{point.lng}" for point in points),
    }


def snapshot_filename(home: Coordinate, stop_count: int, timestamp_ms: int) -> str:
    lat = format(home.latitude, "f").replace(".", "_")
    lng = format(home.longitude, "f").replace(".", "_")
    return f"route_{lat}_{lng}_{stop_count}_{timestamp_ms}.png"


class KakaoMapSnapshotGenerator:
    def __init__(
        self,
        storage: FileStorage | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
        endpoint: str | None = None,
        width: int | None = None,
        height: int | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        subdirectory: str | None = None,
        transport: httpx.BaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.storage = storage
        self.api_key = api_key if api_key is not None else settings.kakao_api_key
        self.base_url = (base_url or settings.kakao_base_url).rstrip("/")
        self.endpoint = endpoint or settings.kakao_static_map_endpoint
        self.width = width or settings.map_width
        self.height = height or settings.map_height
        self.timeout = timeout if timeout is not None else settings.map_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.map_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.map_backoff_seconds
        self.subdirectory = subdirectory if subdirectory is not None else settings.snapshot_subdirectory
        self.transport = transport
        self.clock = clock

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 5.0)),
            transport=self.transport,
        )

    def generate(
        self,
        home: Coordinate,
        address_label: str,
        stops: Sequence[RouteStop],
        return_home: bool,
    ) -> Optional[str]:
        """Render and store a route snapshot; None when it could not be produced."""

        if not self.is_configured:
            logger.warning("Kakao Maps API key is not configured; skipping map snapshot.")
            return None
        try:
            return self.render(home, address_label, stops, return_home)
        except SnapshotGenerationError as exc:
            logger.warning("Map snapshot generation failed: %s", exc.message)
            return None

    def render(
        self,
        home: Coordinate,
        address_label: str,
        stops: Sequence[RouteStop],
        return_home: bool,
    ) -> str:
        logger.info(
            "Generating route snapshot for home %s (%s, %s), waypoints: %d",
            address_label,
            home.latitude,
            home.longitude,
            len(stops),
        )
        points = build_map_points(home, address_label, stops, return_home)
        params = build_static_map_params(points, self.width, self.height)
        image = self._download(params)
        if self.storage is None:
            raise SnapshotGenerationError("No storage configured for map snapshots.")
        filename = snapshot_filename(home, len(stops), int(self.clock() * 1000))
        try:
            url = self.storage.save_file(image, filename, self.subdirectory)
        except (OSError, ValueError) as exc:
            raise SnapshotGenerationError(f"Failed to store map snapshot: {exc}") from exc
        logger.info("Stored map snapshot %s", url)
        return url

    def _download(self, params: dict[str, str]) -> bytes:
        url = f"{self.base_url}{self.endpoint}"
        headers = {"Authorization": f"KakaoAK {self.api_key}"}
        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params, headers=headers)
                    response.raise_for_status()
                    if not response.content:
                        raise SnapshotGenerationError("Static map response was empty.")
                    return response.content
                except httpx.HTTPStatusError as exc:
                    if exc.response.status_code < 500:
                        raise SnapshotGenerationError(
                            f"Static map request rejected with status {exc.response.status_code}."
                        ) from exc
                    attempt += 1
                    if attempt > self.max_retries:
                        raise SnapshotGenerationError(
                            f"Static map service failed with status {exc.response.status_code}."
                        ) from exc
                except httpx.TransportError as exc:
                    # Timeouts and network errors share the retry budget
                    attempt += 1
                    if attempt > self.max_retries:
                        raise SnapshotGenerationError(f"Static map service unreachable: {exc}") from exc
                logger.debug("Retrying static map request (attempt %d/%d)", attempt, self.max_retries)
                time.sleep(self.backoff_seconds * attempt)
        finally:
            client.close()
