"""
Structural and weight mutations for NEAT genomes.

All operators mutate the genome in place. Structural operators draw node
ids and innovation numbers from the GenomeRegistry and return whether the
genome changed.
"""

from typing import Dict, Optional, Set
import numpy as np

from ..core.constants import WEIGHT_MULTIPLIER_RANGE, MUTATION_RATES, ADD_CONNECTION_TRIES
from .genome import Genome, ConnectionGene, NodeType, random_weight
from .registry import GenomeRegistry


def random_weight_multiplier() -> float:
    low, high = WEIGHT_MULTIPLIER_RANGE
    return float(np.random.uniform(low, high))


def _reachable(genome: Genome, start: int, target: int) -> bool:
    """True if `target` can be reached from `start` along any connection."""
    outgoing: Dict[int, Set[int]] = {}
    for c in genome.connections:
        outgoing.setdefault(c.from_node, set()).add(c.to_node)

    stack = [start]
    seen = set()
    while stack:
        node = stack.pop()
        if node == target:
            return True
        if node in seen:
            continue
        seen.add(node)
        stack.extend(outgoing.get(node, ()))
    return False


def creates_cycle(genome: Genome, from_node: int, to_node: int) -> bool:
    """Would a new from -> to connection close a loop?"""
    return from_node == to_node or _reachable(genome, to_node, from_node)


def mutate_add_node(genome: Genome, registry: GenomeRegistry) -> bool:
    """
    Split a random enabled connection A -> B into A -> N -> B.

    The old connection is disabled, A -> N gets weight 1.0 and N -> B keeps
    the old weight, so the network's behaviour barely changes.
    """
    enabled = [c for c in genome.connections if c.enabled]
    if not enabled:
        return False

    old = enabled[np.random.randint(len(enabled))]
    old.enabled = False

    node_id = registry.split_node_id(old.innovation_number)
    if genome.get_node(node_id) is not None:
        # Same connection split twice in one lineage
        node_id = registry.next_node_id()
    genome.add_node(NodeType.HIDDEN, node_id)

    genome.add_connection(old.from_node, node_id, 1.0,
                          registry.connection_innovation(old.from_node, node_id))
    genome.add_connection(node_id, old.to_node, old.weight,
                          registry.connection_innovation(node_id, old.to_node))
    return True


def mutate_add_connection(genome: Genome, registry: GenomeRegistry,
                          tries: int = ADD_CONNECTION_TRIES) -> bool:
    """
    Link two previously unconnected nodes with a random weight.

    Never into a sensor, never out of an output, no duplicates, no cycles.
    Gives up after `tries` random picks.
    """
    sources = [n.id for n in genome.nodes if n.node_type != NodeType.OUTPUT]
    targets = [n.id for n in genome.nodes if n.node_type != NodeType.SENSOR]
    if not sources or not targets:
        return False

    for _ in range(tries):
        from_node = sources[np.random.randint(len(sources))]
        to_node = targets[np.random.randint(len(targets))]
        if genome.has_connection(from_node, to_node):
            continue
        if creates_cycle(genome, from_node, to_node):
            continue

        genome.add_connection(from_node, to_node, random_weight(),
                              registry.connection_innovation(from_node, to_node))
        return True
    return False


def mutate_perturb_weight(genome: Genome, connection: Optional[ConnectionGene] = None) -> bool:
    """Scale one connection's weight by a factor in WEIGHT_MULTIPLIER_RANGE."""
    if connection is None:
        if not genome.connections:
            return False
        connection = genome.connections[np.random.randint(len(genome.connections))]
    connection.weight *= random_weight_multiplier()
    return True


def mutate_reset_weight(genome: Genome, connection: Optional[ConnectionGene] = None) -> bool:
    """Replace one connection's weight with a fresh uniform [-1, 1] draw."""
    if connection is None:
        if not genome.connections:
            return False
        connection = genome.connections[np.random.randint(len(genome.connections))]
    connection.weight = random_weight()
    return True


def mutate(genome: Genome, registry: GenomeRegistry, rates: dict = None) -> Genome:
    """
    Apply every mutation with its configured probability.

    Weight mutations are rolled per connection (reset takes precedence over
    perturbation); structural mutations are rolled once per genome.
    """
    rates = rates or MUTATION_RATES

    for connection in genome.connections:
        roll = np.random.random()
        if roll < rates['reset_weight']:
            mutate_reset_weight(genome, connection)
        elif roll < rates['reset_weight'] + rates['perturb_weight']:
            mutate_perturb_weight(genome, connection)

    if np.random.random() < rates['add_connection']:
        mutate_add_connection(genome, registry)
    if np.random.random() < rates['add_node']:
        mutate_add_node(genome, registry)

    return genome
