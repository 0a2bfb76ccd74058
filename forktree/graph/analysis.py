#!/usr/bin/env python3
"""
Block Graph Analysis
Fork discovery and the height windowing used to keep large header trees
small enough to render
"""

import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Sequence

import networkx as nx

from ..config import NO_PARENT, is_no_parent
from ..core.models import Header
from .builder import Block, block_sort_key

logger = logging.getLogger(__name__)


@dataclass
class Fork:
    """A block with more than one child"""
    common: Block
    children: List[Block] = field(default_factory=list)

    @property
    def height(self) -> int:
        return self.common.height

    def to_dict(self) -> dict:
        return {
            'common': self.common.to_dict(),
            'children': [child.to_dict() for child in self.children],
        }


def block_graph(blocks: Sequence[Block]) -> nx.DiGraph:
    """Parent -> child DiGraph over block ids, children outside the set are skipped"""
    G = nx.DiGraph()
    for block in blocks:
        G.add_node(block.id, block=block)
    for block in blocks:
        for child_id in block.children:
            if child_id in G:
                G.add_edge(block.id, child_id)
    return G


def header_graph(headers: Iterable[Header]) -> nx.DiGraph:
    """Parent -> child DiGraph linking each header to its prev_id when present"""
    G = nx.DiGraph()
    headers = list(headers)
    for header in headers:
        if header.id not in G:
            G.add_node(header.id, header=header)
    for header in headers:
        if not is_no_parent(header.prev_id) and header.prev_id in G:
            G.add_edge(header.prev_id, header.id)
    return G


def recent_forks(blocks: Sequence[Block], how_many: int) -> List[Fork]:
    """Return up to `how_many` fork points, highest first"""
    G = block_graph(blocks)
    forks = []
    for node_id in G.nodes:
        if G.out_degree(node_id) > 1:
            children = sorted((G.nodes[c]['block'] for c in G.successors(node_id)), key=block_sort_key)
            forks.append(Fork(common=G.nodes[node_id]['block'], children=children))

    forks.sort(key=lambda f: block_sort_key(f.common), reverse=True)
    return forks[:max(how_many, 0)]


def hotspot_budget(max_interesting_heights: int) -> int:
    """Number of fork/tip hotspots allowed on top of the recent window"""
    if max_interesting_heights <= 0:
        return 0
    if max_interesting_heights <= 10:
        return min(2, max_interesting_heights)
    return max(max_interesting_heights // 5, 8)
def select_interesting_heights(headers: Iterable, max_interesting_heights: int,
                               first_tracked_height: int = 0,
                               tip_heights: Iterable[int] = ()) -> List[int]:
    """
    Pick the heights worth rendering.

    Always keeps the most recent `max_interesting_heights` heights starting no
    earlier than `first_tracked_height`, then overlays a bounded number of
    hotspots: heights with more than one block (forks), heights of node tips,
    and the maximum height. Hotspots are taken highest first.
    """
    occurrences = Counter(header.height for header in headers)
    if not occurrences:
        logger.warning("Tried to select heights from an empty header set")
        return []
    if max_interesting_heights <= 0:
        logger.warning("max_interesting_heights=0; no heights can be selected")
        return []

    max_height = max(occurrences)
    window_start = max(max_height - (max_interesting_heights - 1), 0, first_tracked_height)
    selected = {h for h in occurrences if window_start <= h <= max_height}

    candidates = {h for h, count in occurrences.items() if count > 1}
    candidates.update(tip_heights)
    candidates.add(max_height)
    hotspots = sorted(
        (h for h in candidates if h >= first_tracked_height and h in occurrences),
        reverse=True,
    )
    budget = hotspot_budget(max_interesting_heights)
    selected.update(hotspots[:budget])

    logger.debug(
        f"Interesting heights: first_tracked_height={first_tracked_height}, "
        f"window_start={window_start}, max_height={max_height}, "
        f"hotspot_budget={budget}, selected={len(selected)}"
    )
    return sorted(selected)


def _subtree_top(G: nx.DiGraph, root_id: int) -> Header:
    """Highest header reachable from root (ties go to canonical order)"""
    reachable = nx.descendants(G, root_id) | {root_id}
    return min((G.nodes[n]['header'] for n in reachable), key=lambda h: (-h.height, h.hash, h.id))


def strip_headers(headers: Sequence[Header], max_interesting_heights: int,
                  first_tracked_height: int = 0,
                  tip_heights: Iterable[int] = ()) -> List[Header]:
    """
    Strip headers that are not near an interesting height.

    A header survives if it sits within two heights below or one height above
    an interesting height. The surviving sub-chains are stitched back
    together: roots are taken in height order and each one is re-parented
    onto the highest header of the previous root's sub-chain.
    """
    interesting = set(select_interesting_heights(
        headers, max_interesting_heights, first_tracked_height, tip_heights))
    kept = [
        h for h in headers
        if any((h.height + offset) in interesting for offset in (-1, 0, 1, 2))
    ]

    G = header_graph(headers).subgraph({h.id for h in kept})
    roots = sorted(
        (G.nodes[n]['header'] for n in G.nodes if G.in_degree(n) == 0),
        key=block_sort_key,
    )

    # the first root loses its stripped parent, later roots hang off the previous sub-chain
    reparented: Dict[int, int] = {}
    connect_to = NO_PARENT
    for root in roots:
        reparented[root.id] = connect_to
        connect_to = _subtree_top(G, root.id).id

    stripped = [
        replace(h, prev_id=reparented[h.id]) if h.id in reparented else h
        for h in kept
    ]
    stripped.sort(key=lambda h: h.id)

    logger.info(f"Stripped header tree: {len(headers)} -> {len(stripped)} headers, "
                f"{len(interesting)} interesting heights, {len(roots)} sub-chains")
    return stripped
