#!/usr/bin/env python3
"""
Block Graph Builder
Merges raw headers and per-node tip reports into one canonical block graph
annotated with which nodes see which block as a tip
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Tuple

from ..config import is_no_parent
from ..core.exceptions import SnapshotFormatError
from ..core.models import Header, NodeReport, Snapshot, TipStatus

logger = logging.getLogger(__name__)


@dataclass
class TipStatusEntry:
    """One tip status on a block and the nodes reporting it"""
    status: TipStatus
    node_names: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'status': self.status.value, 'node_names': list(self.node_names)}


@dataclass
class Block:
    """Header plus derived tip annotations and child links"""
    header: Header
    tip_statuses: List[TipStatusEntry] = field(default_factory=list)
    children: List[int] = field(default_factory=list)

    @property
    def id(self) -> int:
        return self.header.id

    @property
    def prev_id(self) -> int:
        return self.header.prev_id

    @property
    def height(self) -> int:
        return self.header.height

    @property
    def hash(self) -> str:
        return self.header.hash

    @property
    def miner(self) -> str:
        return self.header.miner

    @property
    def difficulty_int(self) -> int:
        return self.header.difficulty_int

    def to_dict(self) -> Dict[str, Any]:
        data = self.header.to_dict()
        data['tip_statuses'] = [entry.to_dict() for entry in self.tip_statuses]
        data['children'] = list(self.children)
        return data


def block_sort_key(block) -> Tuple[int, str, int]:
    """Canonical block order: height, then hash, then id"""
    return (block.height, block.hash, block.id)


def _index_headers(headers: Iterable[Header]) -> Dict[int, Block]:
    blocks_by_id: Dict[int, Block] = {}
    for header in headers:
        if not isinstance(header, Header):
            raise SnapshotFormatError(f"expected Header, got {type(header).__name__}")
        if header.id in blocks_by_id:
            logger.warning(f"Duplicate header id {header.id} ({header.hash}), keeping first occurrence")
            continue
        blocks_by_id[header.id] = Block(header=header)
    return blocks_by_id


def _index_hashes(blocks: Iterable[Block]) -> Dict[str, int]:
    ids_by_hash: Dict[str, int] = {}
    for block in blocks:
        if block.hash in ids_by_hash:
            logger.warning(f"Duplicate block hash {block.hash} on ids "
                           f"{ids_by_hash[block.hash]} and {block.id}")
            continue
        ids_by_hash[block.hash] = block.id
    return ids_by_hash


def aggregate_tip_statuses(node_reports: Iterable[NodeReport],
                           ids_by_hash: Dict[str, int]) -> Dict[int, List[TipStatusEntry]]:
    """
    Fold every (node, tip) pair into per-block status entries.

    A node is counted once per block, under its highest priority status.
    Entries come out in status priority order with node names sorted.
    """
    node_status: Dict[int, Dict[str, TipStatus]] = defaultdict(dict)

    for node in node_reports:
        if not isinstance(node, NodeReport):
            raise SnapshotFormatError(f"expected NodeReport, got {type(node).__name__}")
        for tip in node.tips:
            block_id = ids_by_hash.get(tip.hash)
            if block_id is None:
                logger.debug(f"Tip {tip.hash} reported by {node.name} not in header set, skipping")
                continue
            current = node_status[block_id].get(node.name)
            if current is None or tip.status.rank < current.rank:
                node_status[block_id][node.name] = tip.status

    aggregated: Dict[int, List[TipStatusEntry]] = {}
    for block_id, statuses in node_status.items():
        names_by_status: Dict[TipStatus, List[str]] = defaultdict(list)
        for node_name, status in statuses.items():
            names_by_status[status].append(node_name)
        aggregated[block_id] = [
            TipStatusEntry(status=status, node_names=sorted(names_by_status[status]))
            for status in sorted(names_by_status, key=lambda s: s.rank)
        ]
    return aggregated


def build(headers: Iterable[Header], node_reports: Iterable[NodeReport]) -> List[Block]:
    """
    Build the canonical block graph for one snapshot.

    Returns blocks sorted by (height, hash, id). Each block carries its
    aggregated tip statuses and the ids of its children. Tips whose hash
    matches no header are ignored.
    """
    blocks_by_id = _index_headers(headers)
    ids_by_hash = _index_hashes(blocks_by_id.values())
    tip_statuses = aggregate_tip_statuses(node_reports, ids_by_hash)

    ordered = sorted(blocks_by_id.values(), key=block_sort_key)
    for block in ordered:
        block.tip_statuses = tip_statuses.get(block.id, [])
        if is_no_parent(block.prev_id):
            continue
        parent = blocks_by_id.get(block.prev_id)
        if parent is not None:
            # ordered iteration keeps every children list in canonical order
            parent.children.append(block.id)

    logger.debug(f"Built block graph: {len(ordered)} blocks, "
                 f"{len(tip_statuses)} annotated with tips")
    return ordered


def build_from_snapshot(snapshot: Snapshot) -> List[Block]:
    """Build the block graph from a parsed snapshot"""
    return build(snapshot.header_infos, snapshot.nodes)
