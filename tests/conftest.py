"""
Pytest fixtures and test configuration for ForkTree test suite.
"""
import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from forktree.config import NO_PARENT
from forktree.core.models import Header, NodeReport, Snapshot, Tip, TipStatus


# ============================================================================
# Factories
# ============================================================================

@pytest.fixture
def make_header():
    """Factory for headers with only the graph-relevant fields set"""
    def _make(id, prev_id=NO_PARENT, height=0, hash=None, miner=""):
        return Header(
            id=id,
            prev_id=prev_id,
            height=height,
            hash=hash if hash is not None else f"{id:064x}",
            miner=miner,
        )
    return _make


@pytest.fixture
def make_node():
    """Factory for node reports from (hash, status, height) tuples"""
    def _make(name, tips=(), reachable=True):
        return NodeReport(
            name=name,
            tips=[Tip(hash=h, status=TipStatus(status), height=height) for h, status, height in tips],
            reachable=reachable,
        )
    return _make


# ============================================================================
# Chain Fixtures
# ============================================================================

@pytest.fixture
def linear_headers(make_header):
    """Two block chain a <- b"""
    return [
        make_header(0, NO_PARENT, 0, "a"),
        make_header(1, 0, 1, "b"),
    ]


@pytest.fixture
def fork_headers(make_header):
    """Root 0 with two competing children at height 1"""
    return [
        make_header(0, NO_PARENT, 0, "a"),
        make_header(1, 0, 1, "b"),
        make_header(2, 0, 1, "c"),
    ]


@pytest.fixture
def fork_nodes(make_node):
    return [
        make_node("nodeA", [("b", "active", 1)]),
        make_node("nodeB", [("c", "active", 1)]),
    ]


@pytest.fixture
def three_level_headers(make_header):
    """
    0 -> 1 -> 3
           -> 4
      -> 2 -> 5
    """
    return [
        make_header(0, NO_PARENT, 10, "r"),
        make_header(1, 0, 11, "b1"),
        make_header(2, 0, 11, "b2"),
        make_header(3, 1, 12, "c1"),
        make_header(4, 1, 12, "c2"),
        make_header(5, 2, 12, "c3"),
    ]


@pytest.fixture
def snapshot_document():
    """data.json document as served by the snapshot API"""
    return {
        'header_infos': [
            {'id': 0, 'prev_id': 18446744073709551615, 'height': 100, 'hash': 'aa' * 32,
             'prev_blockhash': '00' * 32, 'merkle_root': '11' * 32, 'time': 1700000000,
             'version': 536870912, 'nonce': 1, 'bits': 486604799, 'difficulty_int': 1,
             'miner': 'Foundry USA'},
            {'id': 1, 'prev_id': 0, 'height': 101, 'hash': 'bb' * 32,
             'prev_blockhash': 'aa' * 32, 'merkle_root': '22' * 32, 'time': 1700000600,
             'version': 536870912, 'nonce': 2, 'bits': 486604799, 'difficulty_int': 1,
             'miner': ''},
            {'id': 2, 'prev_id': 0, 'height': 101, 'hash': 'cc' * 32,
             'prev_blockhash': 'aa' * 32, 'merkle_root': '33' * 32, 'time': 1700000601,
             'version': 536870912, 'nonce': 3, 'bits': 486604799, 'difficulty_int': 1,
             'miner': 'unknown'},
        ],
        'nodes': [
            {'id': 0, 'name': 'alice', 'description': 'Bitcoin Core', 'implementation': 'Bitcoin Core',
             'tips': [{'hash': 'bb' * 32, 'status': 'active', 'height': 101},
                      {'hash': 'cc' * 32, 'status': 'valid-fork', 'height': 101}],
             'last_changed_timestamp': 1700000600, 'version': '27.0', 'reachable': True},
            {'id': 1, 'name': 'bob', 'description': 'btcd', 'implementation': 'btcd',
             'tips': [{'hash': 'cc' * 32, 'status': 'active', 'height': 101}],
             'last_changed_timestamp': 1700000601, 'version': '0.24', 'reachable': False},
        ],
    }


@pytest.fixture
def snapshot(snapshot_document):
    return Snapshot.from_dict(snapshot_document)


# ============================================================================
# Test Markers
# ============================================================================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "layout: marks tree layout tests")
    config.addinivalue_line("markers", "network: marks tests of the HTTP client")
