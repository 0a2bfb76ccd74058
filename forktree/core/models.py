#!/usr/bin/env python3
"""
Snapshot data model
Headers, node tip reports and networks as delivered by the snapshot API
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..config import NO_PARENT, TIP_STATUS_PRIORITY
from .exceptions import SnapshotFormatError

logger = logging.getLogger(__name__)


class TipStatus(Enum):
    """Chain tip status as reported by a node"""
    ACTIVE = "active"
    INVALID = "invalid"
    VALID_FORK = "valid-fork"
    VALID_HEADERS = "valid-headers"
    HEADERS_ONLY = "headers-only"
    UNKNOWN = "unknown"

    @property
    def rank(self) -> int:
        """Display priority, lower is more canonical"""
        return TIP_STATUS_PRIORITY.index(self.value)

    @classmethod
    def parse(cls, value: str) -> 'TipStatus':
        """Parse a status string, unrecognised values become UNKNOWN"""
        try:
            return cls(value)
        except ValueError:
            logger.debug(f"Unrecognised tip status {value!r}, treating as unknown")
            return cls.UNKNOWN


def _require(data: Dict[str, Any], key: str, kind, context: str):
    if key not in data or data[key] is None:
        raise SnapshotFormatError(f"{context}: missing required field '{key}'")
    value = data[key]
    # bool is an int subclass but never a valid id/height
    if isinstance(value, bool) or not isinstance(value, kind):
        raise SnapshotFormatError(
            f"{context}: field '{key}' must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _require_mapping(data: Any, context: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise SnapshotFormatError(f"{context}: expected an object, got {type(data).__name__}")
    return data


def _require_list(data: Dict[str, Any], key: str, context: str) -> List[Any]:
    value = data.get(key)
    if not isinstance(value, list):
        raise SnapshotFormatError(f"{context}: field '{key}' must be a list")
    return value


@dataclass(frozen=True)
class Header:
    """Block header as seen by the monitored nodes"""
    id: int
    prev_id: int
    height: int
    hash: str
    prev_blockhash: str = ""
    merkle_root: str = ""
    time: int = 0
    version: int = 0
    nonce: int = 0
    bits: int = 0
    difficulty_int: int = 0
    miner: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Header':
        """Create header from an API dictionary"""
        data = _require_mapping(data, "header")
        context = f"header {data.get('id', '?')}"
        prev_id = _require(data, 'prev_id', int, context)
        # Producers that pass ids through doubles round the sentinel upwards
        if prev_id >= NO_PARENT:
            prev_id = NO_PARENT
        return cls(
            id=_require(data, 'id', int, context),
            prev_id=prev_id,
            height=_require(data, 'height', int, context),
            hash=_require(data, 'hash', str, context),
            prev_blockhash=data.get('prev_blockhash') or "",
            merkle_root=data.get('merkle_root') or "",
            time=data.get('time') or 0,
            version=data.get('version') or 0,
            nonce=data.get('nonce') or 0,
            bits=data.get('bits') or 0,
            difficulty_int=data.get('difficulty_int') or 0,
            miner=data.get('miner') or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'prev_id': self.prev_id,
            'height': self.height,
            'hash': self.hash,
            'prev_blockhash': self.prev_blockhash,
            'merkle_root': self.merkle_root,
            'time': self.time,
            'version': self.version,
            'nonce': self.nonce,
            'bits': self.bits,
            'difficulty_int': self.difficulty_int,
            'miner': self.miner,
        }


@dataclass(frozen=True)
class Tip:
    """A chain tip reported by one node"""
    hash: str
    status: TipStatus
    height: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Tip':
        data = _require_mapping(data, "tip")
        context = f"tip {data.get('hash', '?')}"
        return cls(
            hash=_require(data, 'hash', str, context),
            status=TipStatus.parse(_require(data, 'status', str, context)),
            height=_require(data, 'height', int, context),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'hash': self.hash, 'status': self.status.value, 'height': self.height}


@dataclass
class NodeReport:
    """Identity, reachability and tips of one monitored node"""
    name: str
    id: int = 0
    tips: List[Tip] = field(default_factory=list)
    reachable: bool = True
    description: str = ""
    implementation: str = ""
    version: str = ""
    last_changed_timestamp: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NodeReport':
        """Create node report from an API dictionary"""
        data = _require_mapping(data, "node")
        context = f"node {data.get('name', '?')}"
        name = _require(data, 'name', str, context)
        tips = [Tip.from_dict(tip) for tip in _require_list(data, 'tips', context)]
        return cls(
            name=name,
            id=data.get('id') or 0,
            tips=tips,
            reachable=bool(data.get('reachable', True)),
            description=data.get('description') or "",
            implementation=data.get('implementation') or "",
            version=data.get('version') or "",
            last_changed_timestamp=data.get('last_changed_timestamp') or 0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'implementation': self.implementation,
            'tips': [tip.to_dict() for tip in self.tips],
            'last_changed_timestamp': self.last_changed_timestamp,
            'version': self.version,
            'reachable': self.reachable,
        }


@dataclass(frozen=True)
class Network:
    """A monitored network"""
    id: int
    name: str
    description: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Network':
        data = _require_mapping(data, "network")
        context = f"network {data.get('id', '?')}"
        return cls(
            id=_require(data, 'id', int, context),
            name=_require(data, 'name', str, context),
            description=data.get('description') or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name, 'description': self.description}


@dataclass
class Snapshot:
    """Complete view of one network: all known headers and every node's tips"""
    header_infos: List[Header] = field(default_factory=list)
    nodes: List[NodeReport] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> 'Snapshot':
        """Parse a data.json document"""
        data = _require_mapping(data, "snapshot")
        return cls(
            header_infos=[Header.from_dict(h) for h in _require_list(data, 'header_infos', "snapshot")],
            nodes=[NodeReport.from_dict(n) for n in _require_list(data, 'nodes', "snapshot")],
        )

    def tip_heights(self) -> List[int]:
        """Distinct heights of all reported tips, ascending"""
        return sorted({tip.height for node in self.nodes for tip in node.tips})

    def find_node(self, name: str) -> Optional[NodeReport]:
        for node in self.nodes:
            if node.name == name:
                return node
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'header_infos': [h.to_dict() for h in self.header_infos],
            'nodes': [n.to_dict() for n in self.nodes],
        }
