#!/usr/bin/env python3
"""
ForkTree Snapshot Client
Fetches network lists and header/tip snapshots from the monitoring API and
follows its change notification stream
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional

import requests

from ..config import DEFAULT_API_URL, REQUEST_TIMEOUT
from ..core.exceptions import SnapshotFetchError, SnapshotFormatError
from ..core.models import Network, Snapshot

logger = logging.getLogger(__name__)

CHANGE_EVENT_NAME = "cache_changed"


@dataclass(frozen=True)
class ChangeEvent:
    """
    A data change notification.

    An unreadable payload (readable=False) concerns every network. A readable
    one only concerns the network it names, so a payload without a network_id
    concerns none.
    """
    network_id: Optional[int] = None
    readable: bool = True

    def concerns(self, network_id: int) -> bool:
        """Whether a listener for network_id should refetch"""
        return not self.readable or self.network_id == network_id


class SnapshotClient:
    """HTTP client for the snapshot API"""

    def __init__(self, base_url: str = DEFAULT_API_URL, timeout: float = REQUEST_TIMEOUT,
                 session: requests.Session = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        if session is None:
            session = requests.Session()
            adapter = requests.adapters.HTTPAdapter(max_retries=3)
            session.mount('http://', adapter)
            session.mount('https://', adapter)
        self.session = session

    def _url(self, path: str) -> str:
        return f"{self.base_url}/api/{path}"

    def _get_json(self, path: str) -> Any:
        url = self._url(path)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise SnapshotFetchError(f"GET {url} failed: {status}", url=url, status_code=status) from e
        except ValueError as e:
            raise SnapshotFormatError(f"GET {url} returned invalid JSON: {e}") from e
        except requests.RequestException as e:
            raise SnapshotFetchError(f"GET {url} failed: {e}", url=url) from e

    def fetch_networks(self) -> List[Network]:
        """Get all monitored networks"""
        data = self._get_json("networks.json")
        if not isinstance(data, dict) or not isinstance(data.get('networks'), list):
            raise SnapshotFormatError("networks.json: field 'networks' must be a list")
        return [Network.from_dict(n) for n in data['networks']]

    def fetch_snapshot(self, network_id: int) -> Snapshot:
        """Get the current header and tip snapshot of a network"""
        snapshot = Snapshot.from_dict(self._get_json(f"{network_id}/data.json"))
        logger.debug(f"Fetched snapshot for network {network_id}: "
                     f"{len(snapshot.header_infos)} headers, {len(snapshot.nodes)} nodes")
        return snapshot

    def iter_change_events(self) -> Iterator[ChangeEvent]:
        """
        Follow the server-sent event stream and yield change notifications.

        Blocks until the server closes the stream. Events other than
        cache_changed are ignored. Transport failures while subscribing or
        reading raise SnapshotFetchError.
        """
        url = self._url("changes")
        try:
            response = self.session.get(
                url, stream=True, timeout=(self.timeout, None),
                headers={'Accept': 'text/event-stream'}
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise SnapshotFetchError(f"Could not subscribe to {url}: {e}", url=url) from e

        logger.info(f"Subscribed to change events at {url}")
        with response:
            try:
                yield from parse_event_stream(response.iter_lines(decode_unicode=True))
            except requests.RequestException as e:
                raise SnapshotFetchError(f"Change stream {url} broke: {e}", url=url) from e

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def _change_event(data: str) -> ChangeEvent:
    try:
        payload = json.loads(data)
    except ValueError:
        return ChangeEvent(readable=False)
    network_id = payload.get('network_id') if isinstance(payload, dict) else None
    if isinstance(network_id, bool) or not isinstance(network_id, int):
        logger.debug(f"Change event without a network id: {data}")
        network_id = None
    return ChangeEvent(network_id=network_id)


def parse_event_stream(lines) -> Iterator[ChangeEvent]:
    """Turn server-sent event lines into ChangeEvents"""
    event_name = "message"
    data_lines: List[str] = []

    for line in lines:
        if isinstance(line, bytes):
            line = line.decode('utf-8')
        if line == "":
            if data_lines and event_name == CHANGE_EVENT_NAME:
                yield _change_event("\n".join(data_lines))
            event_name = "message"
            data_lines = []
            continue
        if line.startswith(":"):
            continue  # keep-alive comment

        key, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if key == "event":
            event_name = value
        elif key == "data":
            data_lines.append(value)

    if data_lines and event_name == CHANGE_EVENT_NAME:
        yield _change_event("\n".join(data_lines))
