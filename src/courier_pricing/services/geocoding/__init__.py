"""Address geocoding and distance estimation."""

from .client import NominatimClient, check_health
from .estimator import DistanceEstimator, EstimateSequencer

__all__ = ["NominatimClient", "check_health", "DistanceEstimator", "EstimateSequencer"]
