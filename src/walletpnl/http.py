"""Thin JSON-over-HTTP helpers shared by the ledger and price clients.

Every call carries an explicit timeout. Transport errors, non-2xx
responses and undecodable bodies all surface as UpstreamError so callers
have exactly one failure type to degrade on.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from walletpnl.exceptions import UpstreamError


async def request_json(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    timeout: float,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    json_body: Any = None,
) -> Any:
    """Issue a request and return the decoded JSON body.

    Raises:
        UpstreamError: On timeout, transport failure, non-2xx status or
            a body that is not valid JSON.
    """
    try:
        response = await client.request(
            method,
            url,
            params=params,
            headers=headers,
            json=json_body,
            timeout=timeout,
        )
        response.raise_for_status()
        return response.json()
    except httpx.TimeoutException as exc:
        raise UpstreamError(f"{method} {url} timed out after {timeout}s") from exc
    except httpx.HTTPStatusError as exc:
        raise UpstreamError(
            f"{method} {url} returned {exc.response.status_code}"
        ) from exc
    except httpx.HTTPError as exc:
        raise UpstreamError(f"{method} {url} failed: {exc}") from exc
    except ValueError as exc:
        raise UpstreamError(f"{method} {url} returned malformed JSON") from exc


def to_decimal(value: Any) -> Decimal | None:
    """Parse a JSON number or numeric string into Decimal, None if not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result
