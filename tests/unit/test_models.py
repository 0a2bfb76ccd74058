"""
Unit tests for snapshot parsing and display helpers.
"""
import pytest

from forktree.config import NO_PARENT, TIP_STATUS_PRIORITY, get_all_config
from forktree.core.exceptions import SnapshotFormatError
from forktree.core.models import Header, Network, NodeReport, Snapshot, Tip, TipStatus
from forktree.utils.display import format_miner_label, short_hash


class TestTipStatus:

    def test_priority_order(self):
        """Status ranks follow the display priority"""
        ordered = sorted(TipStatus, key=lambda s: s.rank)
        assert [s.value for s in ordered] == list(TIP_STATUS_PRIORITY)
        assert TipStatus.ACTIVE.rank < TipStatus.VALID_FORK.rank < TipStatus.INVALID.rank

    def test_unrecognised_status_is_unknown(self):
        """Unknown status strings become unknown"""
        assert TipStatus.parse("headers-only") is TipStatus.HEADERS_ONLY
        assert TipStatus.parse("something-new") is TipStatus.UNKNOWN


class TestHeaderParsing:

    def test_full_header(self, snapshot_document):
        """A complete header parses and serializes back"""
        header = Header.from_dict(snapshot_document['header_infos'][0])

        assert header.id == 0
        assert header.prev_id == NO_PARENT
        assert header.height == 100
        assert header.miner == "Foundry USA"
        assert header.to_dict() == snapshot_document['header_infos'][0]

    def test_optional_fields_default(self):
        """Optional header fields default when absent"""
        header = Header.from_dict({'id': 3, 'prev_id': 2, 'height': 7, 'hash': 'ff'})

        assert header.miner == ""
        assert header.difficulty_int == 0

    def test_rounded_sentinel_is_normalised(self):
        """A rounded sentinel still means no parent"""
        # 2**64 - 1 after a round trip through an IEEE double
        header = Header.from_dict({'id': 0, 'prev_id': 18446744073709552000, 'height': 0, 'hash': 'a'})
        assert header.prev_id == NO_PARENT

    @pytest.mark.parametrize("missing", ['id', 'prev_id', 'height', 'hash'])
    def test_missing_required_field(self, missing):
        """Missing required fields are a format error"""
        data = {'id': 1, 'prev_id': 0, 'height': 1, 'hash': 'b'}
        del data[missing]

        with pytest.raises(SnapshotFormatError, match=missing):
            Header.from_dict(data)

    def test_wrong_types_rejected(self):
        """Mistyped fields are a format error"""
        with pytest.raises(SnapshotFormatError):
            Header.from_dict({'id': "1", 'prev_id': 0, 'height': 1, 'hash': 'b'})
        with pytest.raises(SnapshotFormatError):
            Header.from_dict({'id': True, 'prev_id': 0, 'height': 1, 'hash': 'b'})
        with pytest.raises(SnapshotFormatError):
            Header.from_dict(["not", "a", "dict"])


class TestNodeReportParsing:

    def test_node_with_tips(self, snapshot_document):
        """Node reports parse their tips"""
        node = NodeReport.from_dict(snapshot_document['nodes'][0])

        assert node.name == 'alice'
        assert node.reachable is True
        assert node.tips[0] == Tip(hash='bb' * 32, status=TipStatus.ACTIVE, height=101)
        assert node.to_dict() == snapshot_document['nodes'][0]

    def test_tips_required(self):
        """A node report needs tips"""
        with pytest.raises(SnapshotFormatError):
            NodeReport.from_dict({'name': 'x'})

    def test_malformed_tip(self):
        """A tip missing fields is a format error"""
        with pytest.raises(SnapshotFormatError):
            NodeReport.from_dict({'name': 'x', 'tips': [{'hash': 'a', 'status': 'active'}]})


class TestSnapshotParsing:

    def test_snapshot(self, snapshot):
        """Snapshot parses nodes and headers"""
        assert len(snapshot.header_infos) == 3
        assert [n.name for n in snapshot.nodes] == ['alice', 'bob']
        assert snapshot.find_node('bob').reachable is False
        assert snapshot.find_node('carol') is None
        assert snapshot.tip_heights() == [101]

    def test_round_trip_document(self, snapshot, snapshot_document):
        """Snapshot serializes back to the source document"""
        assert snapshot.to_dict() == snapshot_document

    @pytest.mark.parametrize("document", [
        None,
        [],
        {'nodes': []},
        {'header_infos': {}, 'nodes': []},
    ])
    def test_invalid_documents(self, document):
        """Malformed snapshot documents are rejected"""
        with pytest.raises(SnapshotFormatError):
            Snapshot.from_dict(document)

    def test_network(self):
        """Network parses and serializes"""
        network = Network.from_dict({'id': 2, 'name': 'signet', 'description': 'Signet'})
        assert network.to_dict() == {'id': 2, 'name': 'signet', 'description': 'Signet'}


class TestDisplay:

    def test_short_hash(self):
        """Long hashes are abbreviated"""
        assert short_hash("") == ""
        assert short_hash("abc") == "abc"
        assert short_hash("a" * 21) == "a" * 21
        assert short_hash("0123456789" + "x" * 20 + "abcdefgh") == "0123456789...abcdefgh"

    def test_short_hash_custom_lengths(self):
        """Prefix and suffix lengths are configurable"""
        assert short_hash("0123456789abcdef", 2, 2) == "01...ef"

    @pytest.mark.parametrize("miner,label", [
        ("", "Unknown Miner"),
        ("   ", "Unknown Miner"),
        ("unknown", "Unknown Miner"),
        ("UNKNOWN", "Unknown Miner"),
        ("  F2Pool ", "F2Pool"),
    ])
    def test_miner_label(self, miner, label):
        """Blank or unknown miners get a placeholder label"""
        assert format_miner_label(miner) == label


def test_config_dictionary():
    config = get_all_config()
    assert config['no_parent'] == 2 ** 64 - 1
    assert config['tip_status_priority'][0] == 'active'
