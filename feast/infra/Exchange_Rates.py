"""Exchange-rate table provider: static approximations, optionally refreshed over HTTP."""
import logging
from typing import Optional

import httpx

from feast.logic.pricing.normalizer import DEFAULT_EXCHANGE_RATES, ExchangeRateTable
from feast.utilities.config import EXCHANGE_RATE_API_URL, TIER_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

_current: ExchangeRateTable = DEFAULT_EXCHANGE_RATES


def current_rates() -> ExchangeRateTable:
    return _current


async def refresh_exchange_rates(url: str = EXCHANGE_RATE_API_URL,
                                 transport: Optional[httpx.AsyncBaseTransport] = None) -> ExchangeRateTable:
    """Fetch USD-based rates; on any failure keep the table currently in use.

    Only currencies already in the static table are taken from the response so the
    supported set stays stable. Refreshed rates are still approximations.
    """
    global _current
    try:
        async with httpx.AsyncClient(timeout=TIER_TIMEOUT_SECONDS, transport=transport) as client:
            response = await client.get(f"{url.rstrip('/')}/USD")
            response.raise_for_status()
            data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("Exchange rate refresh failed, keeping current rates: %s", e)
        return _current

    rates = data.get("rates") if isinstance(data, dict) else None
    if not isinstance(rates, dict):
        logger.warning("Exchange rate response has no rates, keeping current rates")
        return _current

    known = DEFAULT_EXCHANGE_RATES.as_dict()
    merged = {
        code: rates[code] if isinstance(rates.get(code), (int, float)) and rates[code] > 0 else rate
        for code, rate in known.items()
    }
    _current = ExchangeRateTable(merged)
    logger.info("Refreshed exchange rates for %d currencies", len(merged))
    return _current


def reset_exchange_rates() -> None:
    global _current
    _current = DEFAULT_EXCHANGE_RATES
