"""
Matching engine for identifying equivalent instruments across venues.
"""

import logging
from typing import Dict, List, Sequence

from . import config
from .models import CanonicalInstrument, Direction, MatchCandidate
from .utils.text_processing import similarity

logger = logging.getLogger(__name__)


def compute_direction(price_a: int, price_b: int) -> Direction:
    """Buy the cheaper venue, sell the richer one."""
    if price_a > price_b:
        return Direction.BUY_B_SELL_A
    return Direction.BUY_A_SELL_B


class MarketMatcher:
    """Lexical matching engine for cross-venue instrument pairs."""

    def __init__(self, similarity_threshold: float = config.DEFAULT_SIMILARITY_THRESHOLD):
        """
        Initialize market matcher.

        Args:
            similarity_threshold: Minimum similarity score (0-1) to consider a match
        """
        self.similarity_threshold = similarity_threshold

    def match_pairs(
        self,
        instruments_a: Sequence[CanonicalInstrument],
        instruments_b: Sequence[CanonicalInstrument],
    ) -> List[MatchCandidate]:
        """
        Pair every A instrument with every B instrument above the threshold.

        This is a full cross product, not a one-to-one assignment: an
        instrument may appear in several pairs. Instruments without a quote
        (yes_price == 0) are skipped. Spread is not filtered here.

        Args:
            instruments_a: Instruments from venue A
            instruments_b: Instruments from venue B

        Returns:
            List of MatchCandidate objects
        """
        pairs = []

        quoted_a = [i for i in instruments_a if i.has_quote]
        quoted_b = [i for i in instruments_b if i.has_quote]

        logger.debug(
            "Matching %d instruments (A) vs %d instruments (B)...",
            len(quoted_a),
            len(quoted_b),
        )

        for inst_a in quoted_a:
            for inst_b in quoted_b:
                score = similarity(inst_a.title, inst_b.title)
                if score < self.similarity_threshold:
                    continue

                pairs.append(
                    MatchCandidate(
                        id_a=inst_a.id,
                        id_b=inst_b.id,
                        title_a=inst_a.title,
                        title_b=inst_b.title,
                        price_a=inst_a.yes_price,
                        price_b=inst_b.yes_price,
                        similarity=score,
                        spread=abs(inst_a.yes_price - inst_b.yes_price),
                        direction=compute_direction(inst_a.yes_price, inst_b.yes_price),
                    )
                )
                logger.debug(
                    "Match found (score=%.2f): %s <-> %s",
                    score,
                    inst_a.title[:40],
                    inst_b.title[:40],
                )

        return pairs

    def find_candidates(
        self,
        instruments_a: Sequence[CanonicalInstrument],
        instruments_b: Sequence[CanonicalInstrument],
        min_spread: int = config.DEFAULT_MIN_SPREAD,
    ) -> List[MatchCandidate]:
        """
        Matched pairs whose spread reaches min_spread, widest first.

        Args:
            instruments_a: Instruments from venue A
            instruments_b: Instruments from venue B
            min_spread: Minimum absolute price difference in cents

        Returns:
            List of MatchCandidate objects sorted by spread descending
        """
        pairs = self.match_pairs(instruments_a, instruments_b)
        return filter_by_spread(pairs, min_spread)


def filter_by_spread(pairs: Sequence[MatchCandidate], min_spread: int) -> List[MatchCandidate]:
    """Keep pairs with spread >= min_spread, sorted by spread descending."""
    candidates = [pair for pair in pairs if pair.spread >= min_spread]
    candidates.sort(key=lambda c: c.spread, reverse=True)
    return candidates


def best_spreads(pairs: Sequence[MatchCandidate]) -> Dict[str, int]:
    """Widest spread seen per pair key."""
    spreads: Dict[str, int] = {}
    for pair in pairs:
        if pair.spread > spreads.get(pair.key, -1):
            spreads[pair.key] = pair.spread
    return spreads
