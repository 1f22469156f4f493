"""ECB daily reference-rate source."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from xml.etree.ElementTree import ParseError

from defusedxml import DefusedXmlException
from defusedxml.ElementTree import fromstring

from currency_api.providers.base import BaseRateSource, RateSourceError
from currency_api.providers.schemas import RawRateTable

from .ecb_client import EcbAPIError, EcbClient, EcbClientConfig

logger = logging.getLogger(__name__)

ECB_BASE_CURRENCY = "EUR"


class EcbRateSource(BaseRateSource):
    """Source that downloads and parses the ECB eurofxref daily XML."""

    name = "ecb"

    def __init__(self, client: EcbClient) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> EcbRateSource:
        client_config = EcbClientConfig(
            url=str(config.get("ECB_URL")),
            timeout=float(config.get("REQUEST_TIMEOUT_SECONDS", 30)),
            max_retries=int(config.get("RATES_SOURCE_MAX_RETRIES", 3)),
            backoff_seconds=float(config.get("RATES_SOURCE_BACKOFF_SECONDS", 0.5)),
        )
        return cls(EcbClient(client_config))

    def fetch_today(self) -> RawRateTable:
        try:
            xml_text = self._client.fetch_xml()
        except EcbAPIError as exc:
            raise RateSourceError(f"Failed to fetch ECB data: {exc}") from exc

        table = parse_ecb_xml(xml_text)
        logger.info("Successfully parsed %s exchange rates for %s", len(table.rates), table.date)
        return table


def parse_ecb_xml(xml_text: str) -> RawRateTable:
    """Parse the eurofxref envelope into a raw table.

    The document nests ``Cube`` elements: an outer container, one cube carrying
    the ``time`` attribute, and one child per currency with ``currency`` and
    ``rate`` attributes. Rates are kept as published strings.

    Raises:
        RateSourceError: If the document is malformed or lacks the dated cube.
    """

    try:
        root = fromstring(xml_text)
    except (ParseError, DefusedXmlException) as exc:
        raise RateSourceError(f"Failed to parse XML: {exc}") from exc

    time_cube = root.find(".//{*}Cube[@time]")
    if time_cube is None:
        raise RateSourceError("Failed to parse XML: missing dated Cube element")

    entries: list[tuple[str, str]] = []
    for rate_el in time_cube.findall("{*}Cube"):
        currency = rate_el.attrib.get("currency")
        rate = rate_el.attrib.get("rate")
        if not currency or rate is None:
            raise RateSourceError("Failed to parse XML: Cube entry missing currency or rate")
        entries.append((currency.strip(), rate.strip()))

    return RawRateTable(
        date=time_cube.attrib["time"].strip(),
        base=ECB_BASE_CURRENCY,
        source=EcbRateSource.name,
        rates=entries,
    )
