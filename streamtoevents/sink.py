"""Event store clients."""

import json
import logging
import sys
from abc import ABC, abstractmethod

import httpx

from streamtoevents.exceptions import EventWriteError


logger = logging.getLogger(__name__)


class EventStore(ABC):
    """Abstract base class for the durable store events are written to."""

    @abstractmethod
    async def write(self, event):
        """
        Writes one record.

        Args:
            event: The :class:`events.SinkEvent` to write.

        Raises:
            EventWriteError: If the write fails.
        """

    async def close(self):
        """Releases any resources held by the store."""


class HttpEventStore(EventStore):
    """Posts records to an HTTP ingestion endpoint.

    The body is ``{"partitionKey": <call id>, "data": <record>}`` so the
    endpoint can keep the records of one call in order.
    """

    def __init__(self, url, client=None):
        self._url = url
        self._owns_client = client is None
        # Stalls are left to the endpoint; no client side timeout
        self._client = client or httpx.AsyncClient(timeout=None)

    async def write(self, event):
        payload = {
            'partitionKey': event.partition_key,
            'data': event.to_record(),
        }
        try:
            response = await self._client.post(self._url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise EventWriteError(event.call_id, e) from e

        logger.debug(
            'Event written',
            extra={'call_id': event.call_id, 'event_type': event.event_type},
        )

    async def close(self):
        if self._owns_client:
            await self._client.aclose()


class PrintEventStore(EventStore):
    """Writes one JSON line per record, for local runs."""

    def __init__(self, stream=None):
        self._stream = stream or sys.stdout

    async def write(self, event):
        self._stream.write(json.dumps(event.to_record()) + '\n')
        self._stream.flush()
