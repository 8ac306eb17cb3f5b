"""
Record store: read-only access to the Airtable base.

Records are plain dicts shaped like Airtable's REST payload:
{"id": "rec...", "createdTime": "...", "fields": {...}}
"""

import logging
from typing import Dict, List, Optional, Protocol

import requests
from pyairtable import Api
from pyairtable.formulas import match

from .config import BadgeConfig
from .errors import UpstreamError

logger = logging.getLogger(__name__)

# Airtable answers 404 for unknown ids and 422 for ids of the wrong shape
NOT_FOUND_STATUSES = (404, 422)


class RecordStore(Protocol):
    """Protocol for the upstream record API."""

    def select(
        self,
        table: str,
        filters: Dict[str, str],
        sort: Optional[List[str]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict]:
        """Return records whose fields equal every value in filters.

        sort uses Airtable's notation: "Field" ascending, "-Field" descending.
        """
        ...

    def find(self, table: str, record_id: str) -> Optional[Dict]:
        """Return the record with this id, or None if it does not exist."""
        ...


class AirtableStore:
    """RecordStore backed by pyairtable."""

    def __init__(self, api_key: str, base_id: str, timeout: Optional[float] = None):
        # No retries: a failed call surfaces to the caller as-is
        self._api = Api(
            api_key,
            timeout=(timeout, timeout) if timeout else None,
            retry_strategy=False,
        )
        self._base_id = base_id

    @classmethod
    def from_config(cls, config: BadgeConfig) -> "AirtableStore":
        config.validate()
        return cls(config.api_key, config.base_id, timeout=config.timeout)

    def _table(self, table: str):
        return self._api.table(self._base_id, table)

    def select(
        self,
        table: str,
        filters: Dict[str, str],
        sort: Optional[List[str]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict]:
        options = {"formula": match(filters)}
        if sort:
            options["sort"] = sort
        if limit:
            options["max_records"] = limit
        try:
            return self._table(table).all(**options)
        except requests.RequestException as e:
            raise UpstreamError(str(e), cause=e) from e

    def find(self, table: str, record_id: str) -> Optional[Dict]:
        try:
            return self._table(table).get(record_id)
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status in NOT_FOUND_STATUSES:
                logger.debug("No %s record with id %r (HTTP %s)", table, record_id, status)
                return None
            raise UpstreamError(str(e), cause=e) from e
        except requests.RequestException as e:
            raise UpstreamError(str(e), cause=e) from e
