"""
Client for the blockchain indexer and the governance period API.

Every request passes through the sliding window rate limiter. Transport
failures surface as IndexerError and abort the refresh cycle that issued them.
"""
import datetime
import logging
from typing import List, Optional, Tuple

import requests

from ..tally.types import IndexerTransaction
from .rate_limit import SlidingWindowRateLimiter

_LOGGER = logging.getLogger(__name__)


class IndexerError(Exception):
    """
    The indexer could not be reached or answered with a non 2xx status
    """


class IndexerClient:
    def __init__(
        self,
        base_url: str,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter()
        self.session = session or requests.Session()
        self.timeout = timeout

    def _get(self, url: str, params: Optional[dict] = None) -> dict:
        self.rate_limiter.wait_for_slot()
        try:
            response = self.session.get(
                url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise IndexerError(f"Request to {url} failed: {e}") from e
        if not 200 <= response.status_code < 300:
            raise IndexerError(
                f"Request to {url} failed: {response.status_code} {response.reason}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise IndexerError(f"Invalid JSON from {url}: {e}") from e

    def request(self, endpoint: str, params: Optional[dict] = None) -> dict:
        return self._get(f"{self.base_url}{endpoint}", params)

    def latest_round(self) -> int:
        return self.request("/v2/status")["last-round"]

    def fetch_account_transactions(
        self, address: str, min_round: int, limit: int = 1000
    ) -> List[IndexerTransaction]:
        """
        Fetch all transactions of an account from min_round on, following the
        next-token until the indexer stops returning one.
        """
        endpoint = f"/v2/accounts/{address}/transactions"
        params = {"limit": limit, "min-round": min_round}
        transactions = []
        pages = 0
        while True:
            _LOGGER.info(f"Fetching {endpoint} page {pages + 1}")
            data = self.request(endpoint, params)
            pages += 1
            for tx in data.get("transactions") or []:
                try:
                    transactions.append(IndexerTransaction.from_indexer(tx))
                except (KeyError, TypeError, ValueError):
                    _LOGGER.debug(f"Ignoring incomplete transaction record {tx}")
            next_token = data.get("next-token")
            if not next_token:
                break
            params = {**params, "next": next_token}
        _LOGGER.info(f"Fetched {len(transactions)} transactions in {pages} pages")
        return transactions

    def fetch_voting_period(self, url: str) -> Tuple[int, int]:
        """
        Voting window in milliseconds, from the end of registration to the end of the period.
        """
        data = self._get(url)
        try:
            start = _parse_datetime(data["registration_end_datetime"])
            end = _parse_datetime(data["end_datetime"])
        except (KeyError, TypeError, ValueError) as e:
            raise IndexerError(f"Invalid period data from {url}") from e
        return start, end


def _parse_datetime(value: str) -> int:
    dt = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return int(dt.timestamp() * 1000)
