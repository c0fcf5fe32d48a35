"""Collection statistics - pure top-N breakdowns over enriched items.

Hey future me - this is a PURE computation, no I/O, no caching! Stats are cheap
(five sorts over at most a few dozen items) so we recompute them every time
instead of caching a view that could drift from the item list.

All sorts are Python's sorted(), which is stable, so ties keep input order.
reverse=True keeps that stability too (equal items are NOT flipped).
"""

from collections.abc import Sequence

from cratescope.domain.entities import CollectionItem, CollectionStats

TOP_N = 10


class StatsAggregator:
    """Derives CollectionStats from a list of enriched collection items."""

    def __init__(self, top_n: int = TOP_N) -> None:
        self.top_n = top_n

    def aggregate(self, items: Sequence[CollectionItem]) -> CollectionStats:
        """Compute averages and top-N lists.

        Args:
            items: Enriched collection items (order matters only for ties)

        Returns:
            CollectionStats; all zeros/empty lists for an empty input
        """
        if not items:
            return CollectionStats()

        n = self.top_n
        by_rarity = sorted(items, key=lambda item: item.rarity_score, reverse=True)
        by_fewest_haves = sorted(items, key=lambda item: item.have_count)
        by_most_wanted = sorted(items, key=lambda item: item.want_count, reverse=True)
        by_collectibility = sorted(
            items, key=lambda item: item.collectibility, reverse=True
        )

        return CollectionStats(
            total_releases=len(items),
            average_rarity_score=sum(item.rarity_score for item in items) / len(items),
            rarest_items=by_rarity[:n],
            # Bottom n of the rarity order, flipped so the most common comes first
            most_common_items=by_rarity[-n:][::-1],
            fewest_haves=by_fewest_haves[:n],
            most_wanted=by_most_wanted[:n],
            most_collectible=by_collectibility[:n],
        )
