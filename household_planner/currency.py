"""Currency conversion over a sparse table of manually entered rates.

Trip budgets keep exchange rates as a flat mapping of ``"FROM-TO"`` keys to
the number of ``TO`` units one ``FROM`` unit buys.  Each entry implies its
reciprocal, so the table forms an undirected graph between currency codes.
Conversions walk that graph breadth-first: the answer uses the path with
the fewest hops, not the numerically best chain.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Dict, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

RateGraph = Dict[str, Dict[str, float]]


def rate_key(from_currency: str, to_currency: str) -> str:
    return f"{from_currency}-{to_currency}"


def parse_rate_key(key: str) -> Optional[Tuple[str, str]]:
    """Split ``"FROM-TO"`` into its codes; ``None`` for malformed keys."""
    parts = key.split("-")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1]


def build_rate_graph(rates: Mapping[str, float]) -> RateGraph:
    """Build the adjacency map with each defined rate and its reciprocal."""
    graph: RateGraph = {}
    for key, raw_rate in rates.items():
        pair = parse_rate_key(key)
        if pair is None:
            logger.warning("Skipping malformed currency pair key %r", key)
            continue
        try:
            rate = float(raw_rate)
        except (TypeError, ValueError):
            logger.warning("Skipping non-numeric rate %r for %s", raw_rate, key)
            continue
        if rate <= 0:
            logger.warning("Skipping non-positive rate %s for %s", rate, key)
            continue
        src, dst = pair
        graph.setdefault(src, {})[dst] = rate
        graph.setdefault(dst, {})[src] = 1 / rate
    return graph


def _walk(from_currency: str, graph: RateGraph):
    """Yield ``(currency, cumulative_rate)`` in breadth-first discovery order."""
    visited = {from_currency}
    queue = deque([(from_currency, 1.0)])
    while queue:
        current, current_rate = queue.popleft()
        yield current, current_rate
        for neighbor, neighbor_rate in graph.get(current, {}).items():
            if neighbor not in visited:
                visited.add(neighbor)
                queue.append((neighbor, current_rate * neighbor_rate))


def resolve_rate(from_currency: str, to_currency: str, rates: Mapping[str, float]) -> Optional[float]:
    """Return the rate converting ``from_currency`` into ``to_currency``.

    Identity conversions are always ``1.0``.  Returns ``None`` when no chain
    of defined pairs connects the two codes; callers should then show the
    literal amount or ask for a manual rate rather than assume parity.
    """
    if from_currency == to_currency:
        return 1.0
    graph = build_rate_graph(rates)
    for currency, rate in _walk(from_currency, graph):
        if currency == to_currency:
            return rate
    return None


def convert_amount(
    amount: float,
    from_currency: str,
    to_currency: str,
    rates: Mapping[str, float],
) -> Optional[float]:
    rate = resolve_rate(from_currency, to_currency, rates)
    if rate is None:
        return None
    return amount * rate


def convert_to_all(amount: float, from_currency: str, rates: Mapping[str, float]) -> List[Dict[str, float]]:
    """List ``amount`` converted into every currency reachable from ``from_currency``.

    Entries come back in discovery order (nearest currencies first) and
    exclude the source currency itself.
    """
    graph = build_rate_graph(rates)
    return [
        {"currency": currency, "rate": rate, "value": amount * rate}
        for currency, rate in _walk(from_currency, graph)
        if currency != from_currency
    ]


def add_rate(rates: Mapping[str, float], from_currency: str, to_currency: str, rate: float) -> Dict[str, float]:
    """Return a copy of ``rates`` with the pair set to ``rate``."""
    from_code = from_currency.strip().upper()
    to_code = to_currency.strip().upper()
    if not from_code or not to_code:
        raise ValueError("Currency codes cannot be empty")
    if "-" in from_code or "-" in to_code:
        raise ValueError("Currency codes cannot contain '-'")
    if from_code == to_code:
        raise ValueError("A rate needs two different currencies")
    if rate <= 0:
        raise ValueError("Rate must be positive")
    updated = dict(rates)
    updated[rate_key(from_code, to_code)] = float(rate)
    return updated


def remove_rate(rates: Mapping[str, float], key: str) -> Dict[str, float]:
    updated = dict(rates)
    updated.pop(key, None)
    return updated
