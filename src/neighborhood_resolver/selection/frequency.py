from __future__ import annotations

from collections import Counter
from typing import Sequence
import logging

from ..neighborhoods.neighborhood import Neighborhood

logger = logging.getLogger(__name__)


class FrequencyResolver:
    """Find the neighborhood names that occur most often in a candidate set.

    Several names can share the maximum count, so the result is a list
    (the "tie set") rather than a single name. Names are returned in the
    order they first appear in the input, which keeps the downstream
    tie-break deterministic.

    Example:
        [Downtown, Downtown, Southside, Southside, East Bay]
        -> ['Downtown', 'Southside']
    """

    @staticmethod
    def counts(candidates: Sequence[Neighborhood]) -> Counter[str]:
        """Occurrences per name. Counter keeps first-insertion order."""
        return Counter(c.name for c in candidates)

    def tied_names(self, candidates: Sequence[Neighborhood]) -> list[str]:
        counts = self.counts(candidates)
        if not counts:
            return []

        max_count = max(counts.values())
        tied = [name for name, count in counts.items() if count == max_count]
        logger.debug(f"Tie set at count={max_count}: {tied} ({len(counts)} distinct names)")
        return tied
