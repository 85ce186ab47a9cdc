"""
Crossover of two NEAT genomes aligned by innovation number.
"""

import numpy as np

from ..core.constants import DISABLED_GENE_INHERIT_PROB
from .genome import Genome, ConnectionGene, NodeGene, NodeType


def crossover(primary: Genome, secondary: Genome) -> Genome:
    """
    Produce a child genome.

    Matching genes (same innovation number) are taken from either parent
    with equal probability and stay disabled with probability
    DISABLED_GENE_INHERIT_PROB if either parent has them disabled. Disjoint
    and excess genes come from `primary` only, so the child has exactly the
    primary's innovation numbers.

    The child keeps every sensor and output node of the primary plus every
    node its connections reference.
    """
    secondary_genes = secondary.connections_by_innovation()
    connections = []

    for gene in primary.connections:
        other = secondary_genes.get(gene.innovation_number)
        if other is None:
            chosen = gene
            enabled = gene.enabled
        else:
            chosen = gene if np.random.random() < 0.5 else other
            if not gene.enabled or not other.enabled:
                enabled = not (np.random.random() < DISABLED_GENE_INHERIT_PROB)
            else:
                enabled = True

        connections.append(ConnectionGene(
            from_node=chosen.from_node,
            to_node=chosen.to_node,
            weight=chosen.weight,
            enabled=enabled,
            innovation_number=chosen.innovation_number,
        ))

    referenced = set()
    for c in connections:
        referenced.add(c.from_node)
        referenced.add(c.to_node)

    nodes = [NodeGene(n.id, n.node_type) for n in primary.nodes
             if n.node_type != NodeType.HIDDEN or n.id in referenced]

    # Matching genes agree on endpoints, so this only triggers for
    # inconsistent parents; copy the node type from whichever parent has it
    known = {n.id for n in nodes}
    for node_id in sorted(referenced - known):
        source = primary.get_node(node_id) or secondary.get_node(node_id)
        nodes.append(NodeGene(node_id, source.node_type if source else NodeType.HIDDEN))

    return Genome(nodes=nodes, connections=connections)
