"""Relevance ranking over registry listings.

Scores every candidate against a query, optionally after walking all pages
of a cursor-paginated listing, and returns the candidates ordered by
descending relevance. Ties keep fetch order, so a fixed input always yields
the same ranking.

Scoring, with ``q`` the lowercased query and ``parts`` its terms:

=======================================  ======
name == q                                 +10
q in name                                 +5
every term in name                        +3
q in description                          +3
every term in description                 +1.5
q in namespace                            +2
q in provider                             +1
verified / trusted                        +2
downloads (log10 over 1..10,000,000)      0..3
published < 30 days / < 90 days ago       +1 / +0.5
=======================================  ======
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import (
    Any,
    Awaitable,
    Callable,
    Generic,
    Iterable,
    List,
    Optional,
    Sequence,
    TypeVar,
)

from registry_client.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_PAGES = 100

# Download popularity is mapped from this range onto [0, DOWNLOAD_SCORE_MAX]
DOWNLOADS_FLOOR = 1
DOWNLOADS_CEILING = 10_000_000
DOWNLOAD_SCORE_MAX = 3.0


@dataclass
class SearchFields:
    """The parts of an item that take part in scoring."""

    key: str
    name: str = ""
    description: str = ""
    namespace: str = ""
    provider: str = ""
    verified: bool = False
    downloads: int = 0
    published_at: Optional[datetime] = None


@dataclass
class RankedItem(Generic[T]):
    """A fetched item with its computed relevance (always >= 0)."""

    item: T
    relevance: float
    key: str = ""


@dataclass
class Page(Generic[T]):
    """One page of a listing; ``next_token`` is None on the last page."""

    items: List[T] = field(default_factory=list)
    next_token: Optional[str] = None


PageFetcher = Callable[[str, Optional[str]], Awaitable[Page[T]]]
FieldExtractor = Callable[[Any], SearchFields]


def default_extractor(item: Any) -> SearchFields:
    """Read scoring fields from attributes (or keys) of the same names."""

    def read(name: str, default: Any) -> Any:
        if isinstance(item, dict):
            value = item.get(name, default)
        else:
            value = getattr(item, name, default)
        return default if value is None else value

    key = read("id", "") or "/".join(
        part for part in (read("namespace", ""), read("name", ""), read("provider", "")) if part
    )
    return SearchFields(
        key=str(key),
        name=read("name", ""),
        description=read("description", ""),
        namespace=read("namespace", ""),
        provider=read("provider", ""),
        verified=bool(read("verified", False)),
        downloads=int(read("downloads", 0)),
        published_at=read("published_at", None),
    )


def log_scale(
    value: float,
    min_in: float = DOWNLOADS_FLOOR,
    max_in: float = DOWNLOADS_CEILING,
    min_out: float = 0.0,
    max_out: float = DOWNLOAD_SCORE_MAX,
) -> float:
    """Map ``value`` from [min_in, max_in] onto [min_out, max_out] in log10 space."""
    if value <= min_in:
        return min_out
    if value >= max_in:
        return max_out
    log_min = math.log10(min_in)
    normalized = (math.log10(value) - log_min) / (math.log10(max_in) - log_min)
    return min_out + normalized * (max_out - min_out)


def _all_terms_in(text: str, parts: Sequence[str]) -> bool:
    return bool(parts) and all(part in text for part in parts)


def dedupe(items: Iterable[T], key: Callable[[T], str]) -> List[T]:
    """Drop items whose key was already seen, keeping first-seen order."""
    seen: set[str] = set()
    unique: List[T] = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        unique.append(item)
    return unique


class PageLimitExceeded(RuntimeError):
    """Raised in strict mode when a listing still has pages at the cap."""


class RelevanceSearchEngine:
    """Scores, sorts and paginates search candidates.

    Holds only immutable configuration; every call keeps its own state.

    Args:
        extractor: Maps an item to its SearchFields
        max_pages: Hard cap on pages fetched by one traversal
        strict_page_limit: Raise instead of logging when the cap trips
        now: Time source used for the recency bonus
    """

    def __init__(
        self,
        extractor: FieldExtractor = default_extractor,
        max_pages: int = DEFAULT_MAX_PAGES,
        strict_page_limit: bool = False,
        now: Optional[Callable[[], datetime]] = None,
    ):
        if max_pages < 1:
            raise ValueError("max_pages must be at least 1")
        self.extractor = extractor
        self.max_pages = max_pages
        self.strict_page_limit = strict_page_limit
        self._now = now or (lambda: datetime.now(timezone.utc))

    def score(self, query: str, fields: SearchFields, now: Optional[datetime] = None) -> float:
        """Compute the relevance of one candidate."""
        q = query.strip().lower()
        parts = q.split()
        relevance = 0.0

        name = fields.name.lower()
        if name == q:
            relevance += 10.0
        elif q in name:
            relevance += 5.0
        elif _all_terms_in(name, parts):
            relevance += 3.0

        description = fields.description.lower()
        if q in description:
            relevance += 3.0
        elif _all_terms_in(description, parts):
            relevance += 1.5

        if q in fields.namespace.lower():
            relevance += 2.0
        if q in fields.provider.lower():
            relevance += 1.0

        if fields.verified:
            relevance += 2.0

        if fields.downloads > 0:
            relevance += log_scale(fields.downloads)

        if fields.published_at is not None:
            relevance += self._recency_bonus(fields.published_at, now or self._now())

        return relevance

    @staticmethod
    def _recency_bonus(published_at: datetime, now: datetime) -> float:
        if published_at.tzinfo is None:
            published_at = published_at.replace(tzinfo=timezone.utc)
        age_days = (now - published_at).total_seconds() / 86400
        if age_days < 30:
            return 1.0
        if age_days < 90:
            return 0.5
        return 0.0

    def rank_one_page(
        self,
        query: str,
        items: Iterable[T],
        min_relevance: Optional[float] = None,
    ) -> List[RankedItem[T]]:
        """Score ``items`` and sort them by descending relevance.

        Args:
            query: Search query
            items: Candidates in fetch order
            min_relevance: Drop candidates scoring at or below this value
        """
        if not query or not query.strip():
            return []
        now = self._now()
        ranked: List[RankedItem[T]] = []
        for item in items:
            fields = self.extractor(item)
            relevance = self.score(query, fields, now)
            if min_relevance is not None and relevance <= min_relevance:
                continue
            ranked.append(RankedItem(item=item, relevance=relevance, key=fields.key))
        # sorted() is stable: equal scores keep fetch order
        return sorted(ranked, key=lambda r: -r.relevance)

    async def collect_pages(self, query: str, fetcher: PageFetcher) -> List[T]:
        """Fetch pages one after another until the listing is exhausted.

        Stops when a page has no next token or no items, or when
        ``max_pages`` pages have been fetched.
        """
        items: List[T] = []
        token: Optional[str] = None

        for page_number in range(1, self.max_pages + 1):
            page = await fetcher(query, token)
            logger.debug(
                f"Fetched page {page_number} for {query!r}: {len(page.items)} items",
                extra={"query": query},
            )
            if not page.items:
                return items
            items.extend(page.items)
            if page.next_token is None:
                return items
            token = page.next_token

        message = (
            f"Stopped paging {query!r} after {self.max_pages} pages "
            f"with more results available ({len(items)} items collected)"
        )
        if self.strict_page_limit:
            raise PageLimitExceeded(message)
        logger.warning(message, extra={"query": query})
        return items

    async def rank_all(
        self,
        query: str,
        fetcher: PageFetcher,
        min_relevance: Optional[float] = None,
    ) -> List[RankedItem[T]]:
        """Walk every page of a listing, dedupe, then rank."""
        items = await self.collect_pages(query, fetcher)
        unique = dedupe(items, key=lambda item: self.extractor(item).key)
        return self.rank_one_page(query, unique, min_relevance)

    def rank_merged(
        self,
        query: str,
        batches: Iterable[Iterable[T]],
        min_relevance: Optional[float] = None,
    ) -> List[RankedItem[T]]:
        """Rank results drawn from several queries against ``query``.

        Duplicates across batches are dropped, first occurrence wins.
        """
        merged = (item for batch in batches for item in batch)
        unique = dedupe(merged, key=lambda item: self.extractor(item).key)
        return self.rank_one_page(query, unique, min_relevance)
