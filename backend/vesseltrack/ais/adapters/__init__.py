"""AIS provider adapters."""

from vesseltrack.ais.adapters.base import ProviderAdapter, SourceInfo
from vesseltrack.ais.adapters.datalastic import DatalasticAdapter
from vesseltrack.ais.adapters.fixture import FixtureAdapter
from vesseltrack.ais.adapters.http import HttpProviderAdapter
from vesseltrack.ais.adapters.myshiptracking import MyShipTrackingAdapter

__all__ = [
    "ProviderAdapter",
    "SourceInfo",
    "DatalasticAdapter",
    "FixtureAdapter",
    "HttpProviderAdapter",
    "MyShipTrackingAdapter",
]
