# autocompleted/services/autocomplete_service.py
# Responsibility: Orchestrates tag autocomplete (Normalization -> Cache -> DB -> Serialization -> Cache write).

import json
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import List, Optional

import psycopg2
from loguru import logger

from autocompleted.config.settings import settings
from autocompleted.services.db import ConnectionPool
from autocompleted.services.errors import ServerError, StoreError
from autocompleted.services.models import Tag
from autocompleted.services.query_normalizer import QueryNormalizer
from autocompleted.services.single_flight import SingleFlight
from autocompleted.services.tag_store import TagStore

EMPTY_BODY = "[]"


class AutocompleteService:
    """
    Resolves autocomplete queries.
    The pool and cache are shared by every request; they are built once at
    startup and handed in here.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        cache,
        store: Optional[TagStore] = None,
        single_flight: Optional[SingleFlight] = None,
        wait_timeout: float = settings.CACHE.SINGLE_FLIGHT_WAIT_SECONDS,
    ):
        self.pool = pool
        self.cache = cache
        self.store = store or TagStore()
        self.single_flight = single_flight or SingleFlight()
        self.wait_timeout = wait_timeout

    def resolve(self, raw_query: str) -> str:
        """
        Returns the JSON body for a raw search prefix.

        Raises:
            BadInput: The raw input failed validation. Nothing else is touched.
            ServerError: The pool or the store failed.
        """
        # 1. Validation & Normalization
        key = QueryNormalizer.normalize(raw_query)
        if not key:
            logger.warning("Query {!r} normalized to an empty key", raw_query)

        # 2. Cache Lookup
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit: {}", key)
            return cached

        # 3-5. Store lookup, serialization and cache write, shared by concurrent misses
        logger.debug("Cache miss: {}", key)
        try:
            return self.single_flight.run(key, lambda: self._load(key), self.wait_timeout)
        except FutureTimeoutError:
            logger.error("Timed out waiting for in-flight lookup of '{}'", key)
            raise ServerError("in-flight lookup timed out")

    def _load(self, key: str) -> str:
        records = self._fetch(key)
        body = self.serialize(records)
        self.cache.put(key, body)
        return body

    def _fetch(self, key: str) -> List[Tag]:
        try:
            with self.pool.connection() as conn:
                return self.store.lookup(conn, key)
        except StoreError as e:
            logger.error("Tag lookup failed for '{}': {}", key, e)
            raise ServerError("store lookup failed") from e
        except psycopg2.Error as e:
            # PoolError and connection failures raised while borrowing
            logger.error("Could not borrow a database connection: {}", e)
            raise ServerError("connection unavailable") from e

    @staticmethod
    def serialize(records: List[Tag]) -> str:
        """Compact JSON array of tag objects. Falls back to '[]' if encoding fails."""
        try:
            return json.dumps(
                [record.model_dump() for record in records],
                ensure_ascii=False,
                separators=(",", ":"),
            )
        except (TypeError, ValueError) as e:
            logger.error("Serialization failed, returning empty result: {}", e)
            return EMPTY_BODY
