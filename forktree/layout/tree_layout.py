#!/usr/bin/env python3
"""
Block Tree Layout Engine
Positions every block of a block graph on a grid: columns follow chain
height, slots spread fork branches apart. Parents are centered on their
children, leaves take consecutive slots.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, Union

from ..config import HORIZONTAL_GAP, VERTICAL_GAP, ROOT_GAP, is_no_parent
from ..core.exceptions import LayoutInputError
from ..graph.builder import Block, block_sort_key
from ..utils.display import short_hash, format_miner_label

logger = logging.getLogger(__name__)

Slot = Union[int, float]


@dataclass(frozen=True)
class LayoutConfig:
    """Spacing used to turn columns and slots into coordinates"""
    horizontal_gap: int = HORIZONTAL_GAP
    vertical_gap: int = VERTICAL_GAP
    root_gap: int = ROOT_GAP  # empty slots between independent trees


@dataclass
class PositionedNode:
    """A block placed on the layout grid"""
    id: int
    column: int
    slot: Slot
    x: int
    y: Slot
    selected: bool
    block: Block
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': str(self.id),
            'column': self.column,
            'slot': self.slot,
            'position': {'x': self.x, 'y': self.y},
            'selected': self.selected,
            'data': self.data,
        }


@dataclass
class Edge:
    """Parent to child link"""
    id: str
    source_id: int
    target_id: int
    selected: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'source': str(self.source_id),
            'target': str(self.target_id),
            'selected': self.selected,
        }


@dataclass
class TreeLayout:
    """Positioned nodes and edges ready for a renderer"""
    nodes: List[PositionedNode] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)

    def node(self, block_id: int) -> Optional[PositionedNode]:
        for node in self.nodes:
            if node.id == block_id:
                return node
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'nodes': [node.to_dict() for node in self.nodes],
            'edges': [edge.to_dict() for edge in self.edges],
        }


class _SlotAssigner:
    """
    Post-order slot assignment for one layout call.

    Walks with an explicit stack so long chains do not hit the recursion
    limit. The leaf cursor and visiting set live only as long as this object.
    """

    def __init__(self, blocks_by_id: Dict[int, Block], root_gap: int):
        self.blocks_by_id = blocks_by_id
        self.root_gap = root_gap
        self.slots: Dict[int, Slot] = {}
        self.visiting: Set[int] = set()
        self.cursor = 0
        self.trees = 0

    def _next_leaf_slot(self) -> int:
        slot = self.cursor
        self.cursor += 1
        return slot

    def _sorted_children(self, block_id: int) -> List[int]:
        block = self.blocks_by_id[block_id]
        present = [self.blocks_by_id[c] for c in block.children if c in self.blocks_by_id]
        present.sort(key=block_sort_key)
        return [child.id for child in present]

    def _open(self, block_id: int) -> list:
        self.visiting.add(block_id)
        # frame: [block id, sorted child ids, next child index, collected child slots]
        return [block_id, self._sorted_children(block_id), 0, []]

    def place_tree(self, root_id: int):
        """Lay out the tree under root_id unless it is already placed"""
        if root_id in self.slots:
            return
        if self.trees > 0:
            self.cursor += self.root_gap
        self.trees += 1

        frames = [self._open(root_id)]
        while frames:
            frame = frames[-1]
            block_id, children, index, child_slots = frame

            if index < len(children):
                frame[2] += 1
                child_id = children[index]
                if child_id in self.slots:
                    child_slots.append(self.slots[child_id])
                elif child_id in self.visiting:
                    logger.warning(f"Cycle detected at block {child_id} (via {block_id}), "
                                   f"assigning a fresh slot")
                    child_slots.append(self._next_leaf_slot())
                else:
                    frames.append(self._open(child_id))
                continue

            frames.pop()
            self.visiting.discard(block_id)
            if child_slots:
                slot = (min(child_slots) + max(child_slots)) / 2
            else:
                slot = self._next_leaf_slot()
            self.slots[block_id] = slot
            if frames:
                frames[-1][3].append(slot)


def _validate(blocks: Sequence[Block]):
    if blocks is None:
        raise LayoutInputError("block set is None")
    for index, block in enumerate(blocks):
        if not isinstance(block, Block):
            raise LayoutInputError(
                f"block set entry {index} is {type(block).__name__}, expected Block"
            )


def height_columns(blocks: Sequence[Block]) -> Dict[int, int]:
    """Map each distinct height to a dense column index"""
    heights = sorted({block.height for block in blocks})
    return {height: column for column, height in enumerate(heights)}


def _node_data(block: Block) -> Dict[str, Any]:
    return {
        'height': block.height,
        'hash': block.hash,
        'short_hash': short_hash(block.hash),
        'miner': format_miner_label(block.miner),
        'difficulty_int': block.difficulty_int,
        'tip_statuses': [entry.to_dict() for entry in block.tip_statuses],
    }


def layout(blocks: Sequence[Block], selected_id: Optional[int] = None,
           config: Optional[LayoutConfig] = None) -> TreeLayout:
    """
    Compute positions for every block and the parent/child edges.

    Roots (blocks whose parent is the sentinel or not in the set) are laid
    out in canonical order with a gap between trees. Blocks unreachable from
    any root, such as members of a prev_id cycle, are laid out afterwards so
    every input block gets exactly one node.
    """
    _validate(blocks)
    config = config or LayoutConfig()

    blocks_by_id: Dict[int, Block] = {}
    for block in blocks:
        blocks_by_id.setdefault(block.id, block)
    if len(blocks_by_id) != len(blocks):
        logger.warning(f"Layout input has {len(blocks) - len(blocks_by_id)} duplicate block ids")

    def has_parent(block: Block) -> bool:
        return not is_no_parent(block.prev_id) and block.prev_id in blocks_by_id

    canonical = sorted(blocks_by_id.values(), key=block_sort_key)
    assigner = _SlotAssigner(blocks_by_id, config.root_gap)

    for block in canonical:
        if not has_parent(block):
            assigner.place_tree(block.id)

    unreachable = [block for block in canonical if block.id not in assigner.slots]
    if unreachable:
        logger.warning(f"{len(unreachable)} blocks unreachable from any root, "
                       f"placing them separately")
    for block in unreachable:
        assigner.place_tree(block.id)

    columns = height_columns(blocks)
    nodes = []
    for block in blocks:
        column = columns[block.height]
        slot = assigner.slots[block.id]
        nodes.append(PositionedNode(
            id=block.id,
            column=column,
            slot=slot,
            x=column * config.horizontal_gap,
            y=slot * config.vertical_gap,
            selected=block.id == selected_id,
            block=block,
            data=_node_data(block),
        ))

    edges = [
        Edge(
            id=f"{block.prev_id}-{block.id}",
            source_id=block.prev_id,
            target_id=block.id,
            selected=selected_id is not None and selected_id in (block.prev_id, block.id),
        )
        for block in blocks
        if has_parent(block)
    ]

    logger.debug(f"Layout: {len(nodes)} nodes, {len(edges)} edges, "
                 f"{assigner.trees} trees, {assigner.cursor} slots")
    return TreeLayout(nodes=nodes, edges=edges)
