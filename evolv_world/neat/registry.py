"""
Genome registry - the single source of innovation numbers and node ids.

Founder genomes reserve node ids 1..S+O and innovation numbers 1..S*O, so
the counters start just past those ranges. Structural mutations that
produce the same structure within a run receive the same numbers.
"""

import threading
from typing import Dict, Tuple

from ..core.constants import SENSOR_COUNT, OUTPUT_COUNT


class GenomeRegistry:
    """Lock-guarded counters plus the structure -> number maps."""

    def __init__(self, sensor_count: int = SENSOR_COUNT, output_count: int = OUTPUT_COUNT):
        self._lock = threading.Lock()
        self.innovation_number = sensor_count * output_count
        self.node_number = sensor_count + output_count
        # (from, to) -> innovation number of that connection
        self.connection_innovations: Dict[Tuple[int, int], int] = {}
        # innovation number of a split connection -> id of the inserted node
        self.split_nodes: Dict[int, int] = {}

        # Founder connections are fixed for every run
        innovation = 1
        for output in range(sensor_count + 1, sensor_count + output_count + 1):
            for sensor in range(1, sensor_count + 1):
                self.connection_innovations[(sensor, output)] = innovation
                innovation += 1

    def next_innovation_number(self) -> int:
        with self._lock:
            self.innovation_number += 1
            return self.innovation_number

    def next_node_id(self) -> int:
        with self._lock:
            self.node_number += 1
            return self.node_number

    def connection_innovation(self, from_node: int, to_node: int) -> int:
        """Innovation number for a connection, reused for identical structure."""
        with self._lock:
            key = (from_node, to_node)
            if key not in self.connection_innovations:
                self.innovation_number += 1
                self.connection_innovations[key] = self.innovation_number
            return self.connection_innovations[key]

    def split_node_id(self, innovation_number: int) -> int:
        """Node id created by splitting the given connection, reused per connection."""
        with self._lock:
            if innovation_number not in self.split_nodes:
                self.node_number += 1
                self.split_nodes[innovation_number] = self.node_number
            return self.split_nodes[innovation_number]

    def to_dict(self) -> dict:
        with self._lock:
            return {
                'innovation_number': self.innovation_number,
                'node_number': self.node_number,
                'connection_innovations': [[f, t, n] for (f, t), n in self.connection_innovations.items()],
                'split_nodes': [[i, n] for i, n in self.split_nodes.items()],
            }

    @classmethod
    def from_dict(cls, d: dict) -> 'GenomeRegistry':
        registry = cls()
        registry.innovation_number = int(d['innovation_number'])
        registry.node_number = int(d['node_number'])
        registry.connection_innovations = {
            (int(f), int(t)): int(n) for f, t, n in d.get('connection_innovations', [])
        }
        registry.split_nodes = {int(i): int(n) for i, n in d.get('split_nodes', [])}
        return registry
