"""Rate source interfaces and data structures."""

from .base import BaseRateSource, RateSourceError
from .ecb_client import EcbAPIError, EcbClient, EcbClientConfig
from .ecb_provider import EcbRateSource, parse_ecb_xml
from .mock import MockRateSource
from .schemas import RawRateTable

__all__ = [
    "BaseRateSource",
    "RateSourceError",
    "RawRateTable",
    "EcbAPIError",
    "EcbClient",
    "EcbClientConfig",
    "EcbRateSource",
    "MockRateSource",
    "parse_ecb_xml",
]
