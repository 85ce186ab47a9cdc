"""
Compatibility distance and speciation of NEAT genomes.
"""

from typing import List

import numpy as np

from ..core.constants import SPECIATION_COEFFICIENTS, SPECIATION_THRESHOLD, SPECIATION_SMALL_GENOME
from .genome import Genome


def species_distance(a: Genome, b: Genome, coefficients: dict = None) -> float:
    """
    NEAT compatibility distance c1*E/N + c2*D/N + c3*W.

    E counts excess genes (beyond the other genome's highest innovation), D
    disjoint genes, W is the mean absolute weight difference of matching
    genes. N is the larger gene count, or 1 for small genomes.
    """
    coefficients = coefficients or SPECIATION_COEFFICIENTS
    genes_a = a.connections_by_innovation()
    genes_b = b.connections_by_innovation()

    if not genes_a and not genes_b:
        return 0.0

    max_a = max(genes_a, default=0)
    max_b = max(genes_b, default=0)
    cutoff = min(max_a, max_b)

    excess = 0
    disjoint = 0
    weight_diffs = []
    for innovation in set(genes_a) | set(genes_b):
        in_a = innovation in genes_a
        in_b = innovation in genes_b
        if in_a and in_b:
            weight_diffs.append(abs(genes_a[innovation].weight - genes_b[innovation].weight))
        elif innovation > cutoff:
            excess += 1
        else:
            disjoint += 1

    n = max(len(genes_a), len(genes_b))
    if n < SPECIATION_SMALL_GENOME:
        n = 1

    mean_weight_diff = float(np.mean(weight_diffs)) if weight_diffs else 0.0
    return (coefficients['excess'] * excess / n
            + coefficients['disjoint'] * disjoint / n
            + coefficients['weight'] * mean_weight_diff)


def speciate(genomes: List[Genome], threshold: float = SPECIATION_THRESHOLD) -> List[List[int]]:
    """
    Group genomes into species.

    Each genome joins the first species whose representative (its first
    member) is within `threshold`; otherwise it founds a new species.

    Returns:
        Lists of indices into `genomes`, one list per species, in founding order
    """
    species: List[List[int]] = []
    for index, genome in enumerate(genomes):
        for members in species:
            if species_distance(genomes[members[0]], genome) < threshold:
                members.append(index)
                break
        else:
            species.append([index])
    return species
