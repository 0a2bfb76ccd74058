#!/usr/bin/env python3
"""
ForkTree Monitor
Fetches a network snapshot, builds the block graph, lays it out and prints
or exports the result. Watch mode re-renders whenever the API reports a
change for the selected network.
"""

import argparse
import json
import logging
import sys
import threading
import time
from typing import List, Optional, Tuple

from ..config import (
    DEFAULT_API_URL, DEBOUNCE_SECONDS, RECENT_FORKS_SHOWN, RECONNECT_SECONDS, REQUEST_TIMEOUT,
)
from ..core.exceptions import ForkTreeError, SnapshotFetchError
from ..core.models import Snapshot, TipStatus
from ..clients.snapshot_client import SnapshotClient
from ..graph.analysis import recent_forks, strip_headers
from ..graph.builder import Block, build
from ..layout.tree_layout import TreeLayout, layout
from ..utils.display import short_hash, format_miner_label

logger = logging.getLogger(__name__)


class ForkTreeMonitor:
    """Builds and renders block trees for one snapshot API"""

    def __init__(self, client: SnapshotClient, max_heights: int = 0,
                 debounce_seconds: float = DEBOUNCE_SECONDS,
                 reconnect_seconds: float = RECONNECT_SECONDS, out=None):
        self.client = client
        self.max_heights = max_heights
        self.debounce_seconds = debounce_seconds
        self.reconnect_seconds = reconnect_seconds
        self.out = out or sys.stdout
        self._timer: Optional[threading.Timer] = None
        self._timer_lock = threading.Lock()

    def _print(self, text: str = ""):
        print(text, file=self.out)

    def process(self, snapshot: Snapshot, selected_id: int = None) -> Tuple[List[Block], TreeLayout]:
        """Run the build and layout pipeline on a snapshot"""
        headers = snapshot.header_infos
        if self.max_heights > 0:
            headers = strip_headers(headers, self.max_heights, tip_heights=snapshot.tip_heights())
        blocks = build(headers, snapshot.nodes)
        return blocks, layout(blocks, selected_id)

    def list_networks(self):
        networks = self.client.fetch_networks()
        self._print(f"📡 {len(networks)} networks")
        for network in networks:
            self._print(f"  [{network.id}] {network.name} - {network.description}")

    def render(self, snapshot: Snapshot, selected_id: int = None):
        """Print nodes, recent forks and the positioned block tree"""
        blocks, tree = self.process(snapshot, selected_id)

        self._print(f"🌳 Block tree: {len(blocks)} blocks, {len(tree.edges)} edges")
        self._print("=" * 60)

        self._print("Nodes:")
        for node in sorted(snapshot.nodes, key=lambda n: n.name):
            state = "reachable" if node.reachable else "UNREACHABLE"
            active = [t for t in node.tips if t.status is TipStatus.ACTIVE]
            tip = f"{active[0].height} {short_hash(active[0].hash)}" if active else "-"
            self._print(f"  {node.name:<20} {state:<12} active tip: {tip}")

        forks = recent_forks(blocks, RECENT_FORKS_SHOWN)
        if forks:
            self._print()
            self._print("Recent forks:")
            for fork in forks:
                branches = ", ".join(short_hash(child.hash) for child in fork.children)
                self._print(f"  height {fork.height}: {short_hash(fork.common.hash)} -> {branches}")

        self._print()
        self._print(f"{'col':>4} {'slot':>6}  {'height':>8}  {'hash':<21}  {'miner':<16} tips")
        for node in sorted(tree.nodes, key=lambda n: (n.column, n.slot, n.id)):
            block = node.block
            marker = "*" if node.selected else " "
            tips = "; ".join(
                f"{entry.status.value}: {', '.join(entry.node_names)}" for entry in block.tip_statuses
            )
            self._print(f"{node.column:>4} {node.slot:>6g} {marker}{block.height:>8}  "
                        f"{short_hash(block.hash):<21}  {format_miner_label(block.miner):<16} {tips}")

    def show(self, network_id: int, selected_id: int = None):
        self.render(self.client.fetch_snapshot(network_id), selected_id)

    def export(self, network_id: int, output: str = None, selected_id: int = None):
        """Write the layout of a network as JSON"""
        _, tree = self.process(self.client.fetch_snapshot(network_id), selected_id)
        document = json.dumps(tree.to_dict(), indent=2, sort_keys=True)
        if output:
            with open(output, 'w') as f:
                f.write(document)
            logger.info(f"Layout written to {output}")
        else:
            self._print(document)

    def _refresh(self, network_id: int, selected_id: int = None):
        try:
            self.show(network_id, selected_id)
        except ForkTreeError as e:
            logger.error(f"Refresh of network {network_id} failed: {e}")

    def schedule_refresh(self, network_id: int, selected_id: int = None):
        """Debounce: restart the refresh timer on every change notification"""
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.debounce_seconds, self._refresh,
                                          args=(network_id, selected_id))
            self._timer.daemon = True
            self._timer.start()

    def cancel_refresh(self):
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _follow_changes(self, network_id: int, selected_id: int = None):
        for event in self.client.iter_change_events():
            if event.concerns(network_id):
                self.schedule_refresh(network_id, selected_id)

    def watch(self, network_id: int, selected_id: int = None, max_reconnects: int = None):
        """
        Render once, then re-render on every change of the network.

        When the change stream ends or fails, waits reconnect_seconds, renders
        again to catch changes missed while disconnected and resubscribes.
        max_reconnects=None keeps reconnecting forever.
        """
        self.show(network_id, selected_id)
        reconnects = 0
        try:
            while True:
                try:
                    self._follow_changes(network_id, selected_id)
                    logger.warning("Change stream closed by the server")
                except SnapshotFetchError as e:
                    logger.warning(f"Change stream lost: {e}")

                if max_reconnects is not None and reconnects >= max_reconnects:
                    logger.info(f"Giving up after {reconnects} reconnects")
                    break
                reconnects += 1
                time.sleep(self.reconnect_seconds)
                logger.info(f"Reconnecting to change stream (attempt {reconnects})")
                self._refresh(network_id, selected_id)
        finally:
            self.cancel_refresh()


def main(argv=None):
    parser = argparse.ArgumentParser(description='ForkTree block tree monitor')
    parser.add_argument('command', choices=['networks', 'show', 'export', 'watch'],
                        help='Command to execute')
    parser.add_argument('network_id', type=int, nargs='?', help='Network id')
    parser.add_argument('--api', '-a', default=DEFAULT_API_URL, help='Snapshot API base URL')
    parser.add_argument('--timeout', type=float, default=REQUEST_TIMEOUT, help='Request timeout in seconds')
    parser.add_argument('--selected', type=int, help='Block id to highlight')
    parser.add_argument('--max-heights', type=int, default=0,
                        help='Only keep headers near the most interesting heights (0 keeps all)')
    parser.add_argument('--output', '-o', help='Output file for export')
    parser.add_argument('--max-reconnects', type=int,
                        help='Stop watching after this many stream reconnects (default: never)')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if args.command != 'networks' and args.network_id is None:
        parser.error(f"{args.command} requires a network_id")

    with SnapshotClient(args.api, timeout=args.timeout) as client:
        monitor = ForkTreeMonitor(client, max_heights=args.max_heights)
        try:
            if args.command == 'networks':
                monitor.list_networks()
            elif args.command == 'show':
                monitor.show(args.network_id, args.selected)
            elif args.command == 'export':
                monitor.export(args.network_id, args.output, args.selected)
            elif args.command == 'watch':
                monitor.watch(args.network_id, args.selected, args.max_reconnects)
        except ForkTreeError as e:
            logger.error(str(e))
            return 1
        except KeyboardInterrupt:
            logger.info("Stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
