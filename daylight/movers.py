"""
Top movers across both venues.
"""

from typing import Dict, Iterable, List, Optional

from . import config
from .models import CanonicalInstrument, Mover


def build_movers(
    instruments: Iterable[CanonicalInstrument],
    deltas: Dict[str, Optional[int]],
) -> List[Mover]:
    """Pair each instrument with its delta for the current cycle."""
    return [
        Mover(
            instrument_id=instrument.history_key,
            venue=instrument.venue,
            title=instrument.title,
            yes_price=instrument.yes_price,
            delta=deltas.get(instrument.history_key),
        )
        for instrument in instruments
    ]


def top_movers(movers: Iterable[Mover], limit: int = config.DEFAULT_TOP_MOVERS) -> List[Mover]:
    """
    Largest absolute price changes.

    None and zero deltas are dropped. Ties keep input order.

    Args:
        movers: Movers for one cycle
        limit: Number of movers to return

    Returns:
        Up to `limit` movers, largest |delta| first
    """
    moving = [m for m in movers if m.delta]
    moving.sort(key=lambda m: abs(m.delta), reverse=True)
    return moving[:limit]
