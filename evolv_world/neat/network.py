"""
Feed-forward phenotype compiled from a NEAT genome.
"""

from typing import Dict, List, Sequence, Tuple

import numpy as np

from .genome import Genome, NodeType


class FeedForwardNetwork:
    """
    Evaluates enabled connections in topological order.

    Hidden and output neurons use tanh. Sensors pass their input through.
    Neurons without incoming signal evaluate to 0.
    """

    def __init__(self, sensor_ids: List[int], output_ids: List[int],
                 order: List[int], incoming: Dict[int, List[Tuple[int, float]]]):
        self.sensor_ids = sensor_ids
        self.output_ids = output_ids
        self.order = order
        self.incoming = incoming

    @classmethod
    def from_genome(cls, genome: Genome) -> 'FeedForwardNetwork':
        sensor_ids = genome.sensor_ids()
        output_ids = genome.output_ids()
        node_ids = [n.id for n in genome.nodes]

        incoming: Dict[int, List[Tuple[int, float]]] = {nid: [] for nid in node_ids}
        outgoing: Dict[int, List[int]] = {nid: [] for nid in node_ids}
        indegree = {nid: 0 for nid in node_ids}
        for c in genome.connections:
            if not c.enabled:
                continue
            incoming[c.to_node].append((c.from_node, c.weight))
            outgoing[c.from_node].append(c.to_node)
            indegree[c.to_node] += 1

        # Kahn's algorithm, seeded in node order for a stable evaluation order
        ready = [nid for nid in node_ids if indegree[nid] == 0]
        order = []
        while ready:
            nid = ready.pop(0)
            order.append(nid)
            for target in outgoing[nid]:
                indegree[target] -= 1
                if indegree[target] == 0:
                    ready.append(target)

        if len(order) != len(node_ids):
            raise ValueError("genome contains a cycle among enabled connections")

        return cls(sensor_ids, output_ids, order, incoming)

    def activate(self, inputs: Sequence[float]) -> List[float]:
        if len(inputs) != len(self.sensor_ids):
            raise ValueError(f"expected {len(self.sensor_ids)} inputs, got {len(inputs)}")

        values = dict(zip(self.sensor_ids, (float(v) for v in inputs)))
        sensors = set(self.sensor_ids)
        for nid in self.order:
            if nid in sensors:
                continue
            total = 0.0
            for source, weight in self.incoming[nid]:
                total += values.get(source, 0.0) * weight
            values[nid] = float(np.tanh(total))

        return [values.get(nid, 0.0) for nid in self.output_ids]
