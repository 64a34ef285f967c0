"""
Storage backends behind the sync store.

All three satisfy the same contract: ``load(key)`` reports the stored value
and whether a record exists, ``save(key, value)`` writes or raises.
"""

import asyncio
import json
import logging
import time
from typing import Any, Optional, Union

import requests

from ..core.enums import BackendType
from ..core.exceptions import ConfigurationError, NetworkError, PersistenceError
from ..core.interfaces import DocumentClient, LoadResult, StorageBackend
from .local_store import LocalKeyValueStore

logger = logging.getLogger(__name__)


class LocalBackend(StorageBackend):
    """On-device fallback: synchronous reads and writes, no network."""

    saving_indicator_hold = 0.6

    def __init__(self, store: LocalKeyValueStore, namespace: str = "scorebook_data"):
        self._store = store
        self._namespace = namespace

    @property
    def backend_type(self) -> BackendType:
        return BackendType.LOCAL

    def _storage_key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def load(self, key: str) -> LoadResult:
        raw = self._store.get_raw(self._storage_key(key))
        if raw is None:
            return LoadResult(None, False)
        try:
            return LoadResult(json.loads(raw), True)
        except ValueError as e:
            raise PersistenceError(f"Corrupt local record for {key}: {str(e)}")

    async def save(self, key: str, value: Any) -> None:
        self._store.set(self._storage_key(key), value)


class DocumentStoreBackend(StorageBackend):
    """Remote document database: one record per key in a fixed collection."""

    persists_initial_on_absent = True

    def __init__(self, client: DocumentClient, collection: str = "gradebooks"):
        self._client = client
        self._collection = collection

    @property
    def backend_type(self) -> BackendType:
        return BackendType.DOCUMENT

    @property
    def collection(self) -> str:
        return self._collection

    async def load(self, key: str) -> LoadResult:
        value = await asyncio.to_thread(self._client.read_one, self._collection, key)
        return LoadResult(value, value is not None)

    async def save(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._client.write_one, self._collection, key, value)


class SpreadsheetEndpointBackend(StorageBackend):
    """Spreadsheet-backed web endpoint reached over HTTP.

    Reads are ``GET <url>?action=read&key=<key>&t=<cache-buster>`` returning
    the stored JSON or ``null``. Writes are one-way ``POST <url>`` requests
    with a ``{key, data}`` body; the endpoint cannot report results back, so
    the response is never inspected.
    """

    saving_indicator_hold = 1.0

    def __init__(self, endpoint_url: Optional[str], session: Optional[requests.Session] = None,
                 timeout: float = 15.0):
        self._endpoint_url = endpoint_url
        self._session = session or requests.Session()
        self._timeout = timeout

    @property
    def backend_type(self) -> BackendType:
        return BackendType.ENDPOINT

    @property
    def endpoint_url(self) -> Optional[str]:
        return self._endpoint_url

    @property
    def is_configured(self) -> bool:
        return bool(self._endpoint_url)

    def _read(self, key: str) -> LoadResult:
        params = {"action": "read", "key": key, "t": int(time.time() * 1000)}
        try:
            response = self._session.get(self._endpoint_url, params=params, timeout=self._timeout)
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Endpoint read failed: {str(e)}")

        if not 200 <= response.status_code < 300:
            raise NetworkError(
                f"Endpoint read returned HTTP {response.status_code}",
                details={"status_code": response.status_code},
            )

        try:
            result = response.json()
        except ValueError as e:
            raise NetworkError(f"Endpoint returned invalid JSON: {str(e)}")

        if result is None:
            return LoadResult(None, False)
        return LoadResult(result, True)

    def _write(self, key: str, value: Any) -> None:
        try:
            self._session.post(
                self._endpoint_url,
                json={"key": key, "data": value},
                timeout=self._timeout,
            )
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Endpoint write failed: {str(e)}")
        logger.debug("Data sent to endpoint %s", self._endpoint_url)

    async def load(self, key: str) -> LoadResult:
        return await asyncio.to_thread(self._read, key)

    async def save(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._write, key, value)


class BackendFactory:
    """Factory for creating storage backend instances."""

    @staticmethod
    def create_backend(backend_type: Union[str, BackendType], **kwargs) -> StorageBackend:
        """Create a storage backend based on type."""
        try:
            kind = backend_type if isinstance(backend_type, BackendType) else BackendType(backend_type.lower())
        except (ValueError, AttributeError):
            raise ConfigurationError(f"Unsupported backend type: {backend_type}")

        if kind is BackendType.LOCAL:
            return LocalBackend(**kwargs)
        elif kind is BackendType.DOCUMENT:
            return DocumentStoreBackend(**kwargs)
        else:
            return SpreadsheetEndpointBackend(**kwargs)
