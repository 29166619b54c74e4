"""Distance estimation between two free-text addresses."""

from __future__ import annotations

import itertools
import logging
import threading

from ...models.domain import DistanceEstimate
from ..geospatial import haversine_distance
from .client import NominatimClient

logger = logging.getLogger(__name__)


class EstimateSequencer:
    """Hands out increasing tickets per session so superseded estimates can be discarded.

    Debounced address input may start a new estimate while an older one from
    the same session is still in flight; only the most recently issued ticket
    of that session is current. Sessions never supersede each other.
    """

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._latest: dict[str, int] = {}
        self._lock = threading.Lock()

    def issue(self, session_id: str) -> int:
        with self._lock:
            ticket = next(self._counter)
            self._latest[session_id] = ticket
            return ticket

    def is_current(self, session_id: str, ticket: int) -> bool:
        with self._lock:
            return self._latest.get(session_id) == ticket

    def release(self, session_id: str, ticket: int) -> None:
        """Forget the session once its current ticket has completed."""
        with self._lock:
            if self._latest.get(session_id) == ticket:
                del self._latest[session_id]


class DistanceEstimator:
    def __init__(self, geocoder: NominatimClient | None = None, sequencer: EstimateSequencer | None = None) -> None:
        self.geocoder = geocoder or NominatimClient()
        self.sequencer = sequencer or EstimateSequencer()

    def estimate_distance(self, pickup_address: str, delivery_address: str) -> DistanceEstimate | None:
        """Geocode both addresses and return the distance between them.

        The delivery lookup is skipped when the pickup lookup fails; there is no
        partial result and no retry.
        """
        pickup = self.geocoder.geocode(pickup_address)
        if pickup is None:
            logger.info(f"Pickup address not found: '{pickup_address}'")
            return None

        delivery = self.geocoder.geocode(delivery_address)
        if delivery is None:
            logger.info(f"Delivery address not found: '{delivery_address}'")
            return None

        return DistanceEstimate(
            distance=haversine_distance(pickup.coordinates, delivery.coordinates),
            pickup_coords=pickup.coordinates,
            delivery_coords=delivery.coordinates,
        )

    def estimate_latest(
        self, session_id: str, pickup_address: str, delivery_address: str
    ) -> tuple[int, DistanceEstimate | None, bool]:
        """Run an estimate under a fresh ticket for ``session_id``.

        Returns ``(ticket, estimate, superseded)``. When a newer request from the
        same session was issued before this one completed, the estimate is
        dropped and ``superseded`` is True.
        """
        ticket = self.sequencer.issue(session_id)
        estimate = self.estimate_distance(pickup_address, delivery_address)
        if not self.sequencer.is_current(session_id, ticket):
            logger.debug(f"Discarding superseded distance estimate #{ticket} for session {session_id}")
            return ticket, None, True
        self.sequencer.release(session_id, ticket)
        return ticket, estimate, False
