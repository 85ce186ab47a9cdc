"""NEAT genomes - genes, innovation registry, mutation, crossover, speciation."""

from .genome import Genome, NodeGene, ConnectionGene, NodeType
from .registry import GenomeRegistry
from .mutation import (
    mutate, mutate_add_node, mutate_add_connection,
    mutate_perturb_weight, mutate_reset_weight, creates_cycle,
)
from .recombination import crossover
from .speciation import species_distance, speciate
from .network import FeedForwardNetwork
