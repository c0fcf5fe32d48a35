"""Collection fetch + community enrichment pipeline.

Hey future me - das ist der teuerste Flow der ganzen App! One collection = 1
listing call + 1 detail call PER RELEASE. At 55 req/min a 50-item collection
takes about a minute, so everything here is about surviving that minute:

1. Listing capped at max_items newest additions (no pagination, on purpose)
2. Details fetched in small batches, batch members concurrently (the shared
   RateLimiter still dispatches them one at a time)
3. Extra pause between batches on top of the limiter's own pacing
4. After EVERY batch the in-progress list goes into a checkpoint cache (5 min),
   so a request that dies halfway resumes where it stopped
5. A failed detail fetch just leaves that item at zero counts - one bad release
   never kills the collection

KNOWN AMBIGUITY: zero have/want means either "nobody has/wants it" or "detail
fetch failed". We don't flag failed items separately.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import replace

from cratescope.application.cache import BaseCache
from cratescope.config.settings import CollectionSettings
from cratescope.domain.entities import (
    CollectionItem,
    CommunityCounts,
    EnrichmentCheckpoint,
    EnrichmentProgress,
    EnrichmentState,
)
from cratescope.domain.exceptions import DomainException
from cratescope.infrastructure.integrations.discogs_client import DiscogsClient

logger = logging.getLogger(__name__)


def checkpoint_key(username: str) -> str:
    """Cache key of the partial-progress entry for a user."""
    return f"{username}_partial"


def _detached(items: Iterable[CollectionItem]) -> list[CollectionItem]:
    """Copies of cached items, so callers can't mutate the process-wide cache."""
    return [replace(item, formats=list(item.formats)) for item in items]


class CollectionService:
    """Fetches a user's collection and enriches it with community counts.

    Hey future me - the service itself is cheap and per-request (it wraps the
    per-request DiscogsClient). The caches and the progress map are passed in
    and SHARED across requests, that's where the state lives.
    """

    def __init__(
        self,
        client: DiscogsClient,
        collection_cache: BaseCache[str, list[CollectionItem]],
        checkpoint_cache: BaseCache[str, EnrichmentCheckpoint],
        detail_cache: BaseCache[str, CommunityCounts],
        settings: CollectionSettings | None = None,
        progress: dict[str, EnrichmentProgress] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize collection service.

        Args:
            client: Discogs client for the current user
            collection_cache: username -> finished, enriched item list
            checkpoint_cache: "{username}_partial" -> EnrichmentCheckpoint
            detail_cache: release id -> CommunityCounts
            settings: Batch size, delays, TTLs and the item cap
            progress: Shared username -> EnrichmentProgress map
            sleep: Async sleep used between batches (injectable for tests)
        """
        self._client = client
        self._collection_cache = collection_cache
        self._checkpoint_cache = checkpoint_cache
        self._detail_cache = detail_cache
        self.settings = settings or CollectionSettings()
        self._progress = progress if progress is not None else {}
        self._sleep = sleep

    def progress(self, username: str) -> EnrichmentProgress:
        """Latest progress snapshot for a user (NOT_STARTED if never fetched)."""
        return self._progress.get(username) or EnrichmentProgress()

    async def fetch_collection(self, username: str) -> list[CollectionItem]:
        """Fetch and enrich a user's collection.

        Args:
            username: Discogs username

        Returns:
            Enriched items, rarest first

        Raises:
            RateLimitExceeded: Listing call kept hitting 429
            CatalogTimeoutError: Listing call timed out
            UpstreamError: Listing call failed (e.g. unknown user, private collection)
        """
        cached = await self._collection_cache.get(username)
        if cached is not None:
            logger.debug("Collection cache hit for %s (%d items)", username, len(cached))
            return _detached(cached)

        progress = EnrichmentProgress()
        self._progress[username] = progress

        checkpoint = await self._checkpoint_cache.get(checkpoint_key(username))
        if checkpoint is not None:
            items, completed = checkpoint.items, checkpoint.completed
            logger.info(
                "Resuming enrichment for %s at item %d/%d",
                username,
                completed,
                len(items),
            )
        else:
            progress.state = EnrichmentState.FETCHING_BULK_LIST
            items = await self._fetch_listing(username)
            completed = 0

        await self._enrich(username, items, completed, progress)

        result = sorted(items, key=lambda item: item.rarity_score, reverse=True)
        await self._collection_cache.set(
            username, result, ttl_seconds=self.settings.cache_ttl_seconds
        )
        await self._checkpoint_cache.delete(checkpoint_key(username))

        progress.state = EnrichmentState.COMPLETE
        logger.info(
            "Collection for %s complete: %d items, %d batch(es) with failures",
            username,
            len(result),
            progress.failed_batches,
        )
        return _detached(result)

    async def _fetch_listing(self, username: str) -> list[CollectionItem]:
        releases = await self._client.get_collection_releases(
            username, per_page=self.settings.max_items
        )
        items = [
            CollectionItem.from_collection_release(release)
            for release in releases[: self.settings.max_items]
        ]
        logger.info("Fetched %d collection items for %s", len(items), username)
        return items

    # Yo future me, the batch loop. Counts are applied IN PLACE on the shared item objects,
    # so the checkpoint (which holds the same list) always reflects what's done. Batch i only
    # starts after batch i-1 fully settled - no overlap between batches.
    async def _enrich(
        self,
        username: str,
        items: list[CollectionItem],
        start: int,
        progress: EnrichmentProgress,
    ) -> None:
        batch_size = self.settings.batch_size
        starts = range(start, len(items), batch_size)
        progress.batch_count = len(starts)

        for index, batch_start in enumerate(starts):
            batch = items[batch_start : batch_start + batch_size]
            progress.state = EnrichmentState.ENRICHING_BATCHES
            progress.batch_index = index

            results = await asyncio.gather(
                *(self.fetch_item_detail(item.id) for item in batch),
                return_exceptions=True,
            )

            failed = 0
            for item, result in zip(batch, results, strict=True):
                if isinstance(result, CommunityCounts):
                    item.apply_counts(result)
                    continue
                failed += 1
                item.apply_counts(CommunityCounts())
                if isinstance(result, DomainException):
                    logger.warning(
                        "Detail fetch for release %s failed: %s", item.id, result.message
                    )
                else:
                    logger.error(
                        "Unexpected error enriching release %s",
                        item.id,
                        exc_info=result,
                    )

            if failed:
                progress.failed_batches += 1
                progress.state = EnrichmentState.PARTIALLY_FAILED

            await self._checkpoint_cache.set(
                checkpoint_key(username),
                EnrichmentCheckpoint(items=items, completed=batch_start + len(batch)),
                ttl_seconds=self.settings.checkpoint_ttl_seconds,
            )
            logger.debug(
                "Batch %d/%d for %s done (%d failed)",
                index + 1,
                len(starts),
                username,
                failed,
            )

            if index < len(starts) - 1:
                await self._sleep(self.settings.batch_delay_seconds)

    async def fetch_item_detail(self, item_id: str) -> CommunityCounts:
        """Community have/want counts for one release, cached for an hour.

        Args:
            item_id: Discogs release id

        Returns:
            CommunityCounts (rarity_score derived)

        Raises:
            RateLimitExceeded, CatalogTimeoutError, UpstreamError: Fetch failed
        """
        key = str(item_id)
        cached = await self._detail_cache.get(key)
        if cached is not None:
            return cached

        release = await self._client.get_release(key)
        counts = CommunityCounts.from_release(release)
        await self._detail_cache.set(
            key, counts, ttl_seconds=self.settings.cache_ttl_seconds
        )
        return counts
