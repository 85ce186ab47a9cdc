"""
NEAT Genome - Node and connection genes encoding a creature's controller.

Node genes name the neurons (sensor, hidden, output). Connection genes link
two nodes with a weight and carry an innovation number, the historical
marker that lets crossover and speciation line up genes from different
genomes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set
import numpy as np

from ..core.constants import SENSOR_COUNT, OUTPUT_COUNT
from ..events.console_log import console_log


class NodeType(Enum):
    """Role of a neuron in the network."""
    SENSOR = 'sensor'
    HIDDEN = 'hidden'
    OUTPUT = 'output'


@dataclass
class NodeGene:
    id: int
    node_type: NodeType

    def to_dict(self) -> dict:
        return {'id': self.id, 'node_type': self.node_type.value}

    @classmethod
    def from_dict(cls, d: dict) -> 'NodeGene':
        return cls(int(d['id']), NodeType(d['node_type']))


@dataclass
class ConnectionGene:
    from_node: int
    to_node: int
    weight: float
    enabled: bool = True
    innovation_number: int = 0

    def to_dict(self) -> dict:
        return {
            'from_node': self.from_node,
            'to_node': self.to_node,
            'weight': float(self.weight),
            'enabled': bool(self.enabled),
            'innovation_number': self.innovation_number,
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'ConnectionGene':
        return cls(
            from_node=int(d['from_node']),
            to_node=int(d['to_node']),
            weight=float(d['weight']),
            enabled=bool(d.get('enabled', True)),
            innovation_number=int(d['innovation_number']),
        )


def random_weight() -> float:
    """Uniform weight in [-1, 1]."""
    return float(np.random.uniform(-1.0, 1.0))


@dataclass
class Genome:
    """
    A NEAT genome: ordered node genes plus ordered connection genes.

    Every connection references nodes present in the same genome. Node ids
    and innovation numbers beyond the founder ranges come from a
    GenomeRegistry and are never reused.
    """
    nodes: List[NodeGene] = field(default_factory=list)
    connections: List[ConnectionGene] = field(default_factory=list)

    @classmethod
    def new_fully_linked(cls, sensor_count: int = SENSOR_COUNT,
                         output_count: int = OUTPUT_COUNT) -> 'Genome':
        """
        Founder genome: every sensor connected to every output.

        Node ids run 1..S+O (sensors first). All founders share innovation
        numbers 1..S*O, assigned output by output.
        """
        genome = cls()
        node_counter = 1

        for _ in range(sensor_count):
            genome.nodes.append(NodeGene(node_counter, NodeType.SENSOR))
            node_counter += 1

        innovation = 1
        for _ in range(output_count):
            output_id = node_counter
            genome.nodes.append(NodeGene(output_id, NodeType.OUTPUT))
            node_counter += 1

            for sensor in genome.nodes[:sensor_count]:
                genome.connections.append(ConnectionGene(
                    from_node=sensor.id,
                    to_node=output_id,
                    weight=random_weight(),
                    enabled=True,
                    innovation_number=innovation,
                ))
                innovation += 1

        return genome

    # === Queries ===

    def node_ids(self) -> Set[int]:
        return {n.id for n in self.nodes}

    def get_node(self, node_id: int) -> Optional[NodeGene]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def sensor_ids(self) -> List[int]:
        return [n.id for n in self.nodes if n.node_type == NodeType.SENSOR]

    def output_ids(self) -> List[int]:
        return [n.id for n in self.nodes if n.node_type == NodeType.OUTPUT]

    def connections_by_innovation(self) -> Dict[int, ConnectionGene]:
        return {c.innovation_number: c for c in self.connections}

    def has_connection(self, from_node: int, to_node: int) -> bool:
        return any(c.from_node == from_node and c.to_node == to_node for c in self.connections)

    def __len__(self):
        return len(self.connections)

    # === Mutation helpers ===

    def add_node(self, node_type: NodeType, node_id: int):
        if self.get_node(node_id) is not None:
            raise ValueError(f"duplicate node id {node_id}")
        self.nodes.append(NodeGene(node_id, node_type))

    def add_connection(self, from_node: int, to_node: int, weight: float,
                       innovation_number: int, enabled: bool = True) -> ConnectionGene:
        connection = ConnectionGene(from_node, to_node, weight, enabled, innovation_number)
        self.connections.append(connection)
        return connection

    def validate(self):
        """
        Check structural consistency.

        Raises:
            ValueError: duplicate node ids, duplicate innovation numbers, or a
                connection referencing a node that is not in the genome.
        """
        ids = [n.id for n in self.nodes]
        if len(ids) != len(set(ids)):
            raise ValueError("genome has duplicate node ids")

        innovations = [c.innovation_number for c in self.connections]
        if len(innovations) != len(set(innovations)):
            raise ValueError("genome has duplicate innovation numbers")

        known = set(ids)
        for c in self.connections:
            if c.from_node not in known or c.to_node not in known:
                raise ValueError(
                    f"connection {c.innovation_number} references missing node "
                    f"({c.from_node} -> {c.to_node})"
                )

    def copy(self) -> 'Genome':
        return Genome(
            nodes=[NodeGene(n.id, n.node_type) for n in self.nodes],
            connections=[ConnectionGene(c.from_node, c.to_node, c.weight, c.enabled,
                                        c.innovation_number)
                         for c in self.connections],
        )

    # === Logging ===

    def log_nodes(self):
        for n in self.nodes:
            console_log().log(f"[Genome] node {n.id} is {n.node_type.name}")

    def log_connections(self):
        for c in self.connections:
            prefix = "" if c.enabled else "DISABLED! "
            console_log().log(
                f"[Genome] {prefix}innovation {c.innovation_number}: "
                f"from {c.from_node} to {c.to_node} with weight {c.weight:.4f}"
            )

    # === Persistence ===

    def to_dict(self) -> dict:
        return {
            'nodes': [n.to_dict() for n in self.nodes],
            'connections': [c.to_dict() for c in self.connections],
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'Genome':
        genome = cls(
            nodes=[NodeGene.from_dict(n) for n in d.get('nodes', [])],
            connections=[ConnectionGene.from_dict(c) for c in d.get('connections', [])],
        )
        genome.validate()
        return genome
