import numpy as np

from evolv_world.neat.genome import Genome, NodeGene, ConnectionGene, NodeType
from evolv_world.neat.mutation import (
    mutate, mutate_add_node, mutate_add_connection,
    mutate_perturb_weight, mutate_reset_weight, creates_cycle,
)
from evolv_world.neat.network import FeedForwardNetwork
from evolv_world.neat.registry import GenomeRegistry


def single_link_genome(weight=0.7):
    return Genome(
        nodes=[NodeGene(1, NodeType.SENSOR), NodeGene(6, NodeType.OUTPUT)],
        connections=[ConnectionGene(1, 6, weight, True, 1)],
    )


def test_registry_counters_start_after_founders():
    registry = GenomeRegistry()
    assert registry.next_innovation_number() == 21
    assert registry.next_node_id() == 10


def test_registry_reuses_numbers_for_identical_structure():
    registry = GenomeRegistry()
    first = registry.connection_innovation(3, 12)
    assert registry.connection_innovation(3, 12) == first == 21
    assert registry.split_node_id(4) == registry.split_node_id(4) == 10
    assert registry.split_node_id(5) == 11


def test_registry_dict_form_keeps_maps():
    registry = GenomeRegistry()
    registry.connection_innovation(3, 12)
    registry.split_node_id(4)
    restored = GenomeRegistry.from_dict(registry.to_dict())
    assert restored.innovation_number == registry.innovation_number
    assert restored.node_number == registry.node_number
    assert restored.connection_innovation(3, 12) == 21
    assert restored.split_node_id(4) == 10


def test_add_node_splits_a_connection():
    registry = GenomeRegistry()
    genome = single_link_genome(weight=0.7)
    assert mutate_add_node(genome, registry)

    old, into, out = genome.connections
    assert not old.enabled
    assert genome.get_node(10).node_type == NodeType.HIDDEN
    assert (into.from_node, into.to_node, into.weight) == (1, 10, 1.0)
    assert (out.from_node, out.to_node, out.weight) == (10, 6, 0.7)
    assert {into.innovation_number, out.innovation_number} == {21, 22}
    genome.validate()


def test_same_split_in_two_genomes_gets_same_numbers():
    registry = GenomeRegistry()
    a = single_link_genome()
    b = single_link_genome()
    mutate_add_node(a, registry)
    mutate_add_node(b, registry)
    assert a.node_ids() == b.node_ids()
    assert ([c.innovation_number for c in a.connections]
            == [c.innovation_number for c in b.connections])


def test_splitting_same_connection_twice_uses_fresh_node():
    registry = GenomeRegistry()
    genome = single_link_genome()
    mutate_add_node(genome, registry)
    genome.connections[0].enabled = True
    for c in genome.connections[1:]:
        c.enabled = False
    assert mutate_add_node(genome, registry)
    assert genome.get_node(11) is not None
    genome.validate()


def test_add_node_needs_an_enabled_connection():
    genome = single_link_genome()
    genome.connections[0].enabled = False
    assert not mutate_add_node(genome, GenomeRegistry())


def test_full_founder_has_no_free_connection():
    genome = Genome.new_fully_linked()
    assert not mutate_add_connection(genome, GenomeRegistry())
    assert len(genome) == 20


def test_add_connection_respects_node_roles():
    registry = GenomeRegistry()
    genome = Genome.new_fully_linked()
    mutate_add_node(genome, registry)
    before = len(genome)
    assert mutate_add_connection(genome, registry, tries=500)
    assert len(genome) == before + 1

    new = genome.connections[-1]
    assert genome.get_node(new.to_node).node_type != NodeType.SENSOR
    assert genome.get_node(new.from_node).node_type != NodeType.OUTPUT
    genome.validate()


def test_creates_cycle():
    genome = single_link_genome()
    mutate_add_node(genome, GenomeRegistry())
    assert creates_cycle(genome, 10, 10)
    assert creates_cycle(genome, 6, 10)
    assert not creates_cycle(genome, 1, 6)

    # Disabled links still count
    lone = single_link_genome()
    lone.connections[0].enabled = False
    assert creates_cycle(lone, 6, 1)


def test_weight_operators():
    genome = single_link_genome(weight=0.5)
    connection = genome.connections[0]
    mutate_perturb_weight(genome, connection)
    assert 0.4 <= connection.weight <= 0.6
    mutate_reset_weight(genome, connection)
    assert -1.0 <= connection.weight <= 1.0
    assert not mutate_perturb_weight(Genome())
    assert not mutate_reset_weight(Genome())


def test_mutate_with_zero_rates_changes_nothing():
    genome = Genome.new_fully_linked()
    before = genome.copy()
    rates = {'add_node': 0.0, 'add_connection': 0.0, 'perturb_weight': 0.0, 'reset_weight': 0.0}
    assert mutate(genome, GenomeRegistry(), rates) is genome
    assert genome == before


def test_mutate_perturbs_every_weight_within_range():
    genome = Genome.new_fully_linked()
    before = [c.weight for c in genome.connections]
    rates = {'add_node': 0.0, 'add_connection': 0.0, 'perturb_weight': 1.0, 'reset_weight': 0.0}
    mutate(genome, GenomeRegistry(), rates)
    for old, c in zip(before, genome.connections):
        low, high = sorted((old * 0.8, old * 1.2))
        assert low - 1e-12 <= c.weight <= high + 1e-12


def test_repeated_mutation_keeps_genomes_valid_and_acyclic():
    registry = GenomeRegistry()
    rates = {'add_node': 0.5, 'add_connection': 0.5, 'perturb_weight': 0.8, 'reset_weight': 0.1}
    genomes = [Genome.new_fully_linked() for _ in range(4)]
    for _ in range(40):
        for genome in genomes:
            mutate(genome, registry, rates)
    for genome in genomes:
        genome.validate()
        network = FeedForwardNetwork.from_genome(genome)
        outputs = network.activate(np.zeros(5))
        assert len(outputs) == 4
        for c in genome.connections:
            assert genome.get_node(c.to_node).node_type != NodeType.SENSOR
            assert genome.get_node(c.from_node).node_type != NodeType.OUTPUT
