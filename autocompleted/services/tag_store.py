# autocompleted/services/tag_store.py
# Responsibility: Executes the ordered tag lookups (prefix, then fuzzy fallback) against PostgreSQL.

from typing import List, NamedTuple, Optional, Sequence

import psycopg2
from loguru import logger
from psycopg2.extras import RealDictCursor
from pydantic import ValidationError

from autocompleted.config.settings import settings
from autocompleted.services.errors import StoreError
from autocompleted.services.models import Tag
from autocompleted.services.search_pattern import to_search_pattern

# Tier A: tags whose name matches the prefix, plus tags reachable through an
# alias whose antecedent matches it. The alias branch skips tags already
# matched directly.
PREFIX_SQL = r"""
    SELECT * FROM (
        SELECT DISTINCT ON (name, post_count) * FROM (
            (SELECT tags.id, tags.name, tags.post_count, tags.category, NULL AS antecedent_name
             FROM tags
             WHERE tags.name LIKE %(pattern)s ESCAPE E'\\'
               AND tags.post_count > 0
             ORDER BY tags.post_count DESC
             LIMIT %(limit)s)
            UNION ALL
            (SELECT tags.id, tags.name, tags.post_count, tags.category, tag_aliases.antecedent_name
             FROM tag_aliases
             INNER JOIN tags ON tags.name = tag_aliases.consequent_name
             WHERE tag_aliases.antecedent_name LIKE %(pattern)s ESCAPE E'\\'
               AND tag_aliases.status IN ('active', 'processing', 'queued')
               AND tags.name NOT LIKE %(pattern)s ESCAPE E'\\'
               AND tag_aliases.post_count > 0
             ORDER BY tag_aliases.post_count DESC
             LIMIT %(alias_limit)s)
        ) AS unioned_query
        ORDER BY name, post_count DESC
    ) AS deduplicated
    ORDER BY post_count DESC, name ASC
    LIMIT %(limit)s
"""

# Tier B: trigram similarity against the canonical key (requires pg_trgm).
FUZZY_SQL = """
    SELECT tags.id, tags.name, tags.post_count, tags.category, NULL AS antecedent_name
    FROM tags
    WHERE similarity(tags.name, %(key)s) >= %(threshold)s
      AND tags.post_count > 0
    ORDER BY tags.post_count DESC, tags.name ASC
    LIMIT %(limit)s
"""


class LookupOutcome(NamedTuple):
    """Result of a single lookup strategy. Empty when no rows matched."""

    strategy: str
    records: List[Tag]

    @property
    def found(self) -> bool:
        return bool(self.records)


class LookupStrategy:
    """A single SQL shape tried by TagStore. Subclasses provide SQL and parameters."""

    name = "base"
    sql = ""

    def __init__(self, limit: int = settings.DB.RESULT_LIMIT):
        self.limit = limit

    def params(self, key: str) -> dict:
        raise NotImplementedError

    def run(self, cur, key: str) -> LookupOutcome:
        cur.execute(self.sql, self.params(key))
        records = [Tag(**row) for row in cur.fetchall()]
        return LookupOutcome(self.name, records)


class PrefixLookup(LookupStrategy):
    """Prefix-anchored match on tag names and alias antecedents."""

    name = "prefix"
    sql = PREFIX_SQL

    def params(self, key: str) -> dict:
        return {
            "pattern": to_search_pattern(key),
            "limit": self.limit,
            "alias_limit": self.limit * 2,
        }


class FuzzyLookup(LookupStrategy):
    """Trigram similarity fallback for keys without a prefix match."""

    name = "fuzzy"
    sql = FUZZY_SQL

    def __init__(self, limit: int = settings.DB.RESULT_LIMIT, threshold: float = settings.DB.FUZZY_THRESHOLD):
        super().__init__(limit)
        self.threshold = threshold

    def params(self, key: str) -> dict:
        return {"key": key, "threshold": self.threshold, "limit": self.limit}


class TagStore:
    """
    Store client for tag autocomplete.
    Tries each strategy in order and returns the first non-empty result.
    """

    def __init__(
        self,
        strategies: Optional[Sequence[LookupStrategy]] = None,
        statement_timeout_ms: int = settings.DB.STATEMENT_TIMEOUT_MS,
    ):
        self.strategies = list(strategies) if strategies is not None else [PrefixLookup(), FuzzyLookup()]
        self.statement_timeout_ms = statement_timeout_ms

    def lookup(self, conn, key: str) -> List[Tag]:
        """
        Runs the lookup on a borrowed connection.

        Args:
            conn: A psycopg2 connection checked out from the pool.
            key (str): Canonical key.

        Returns:
            List[Tag]: Records of the first strategy that found anything, or [].

        Raises:
            StoreError: Any database failure, including the statement timeout.
        """
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("SET statement_timeout = %s", (self.statement_timeout_ms,))
                for strategy in self.strategies:
                    outcome = strategy.run(cur, key)
                    if outcome.found:
                        logger.debug("Lookup '{}' matched via {} ({} rows)", key, outcome.strategy, len(outcome.records))
                        return outcome.records
        except (psycopg2.Error, ValidationError) as e:
            raise StoreError(str(e)) from e

        logger.debug("Lookup '{}' matched nothing", key)
        return []
