#!/usr/bin/env python3
"""
evolv_world Analysis Suite
==========================

Post-simulation analysis of the JSONL event log:
- Population dynamics and derivatives
- Birth and death rates per time bin
- Causes of death and lifespans
- Generation depth over time

Run from the project folder:
    python -m evolv_world.analyze_simulation

Or with specific log file:
    python -m evolv_world.analyze_simulation path/to/event_log.jsonl

Outputs simulation_report.txt and simulation_analysis.png
"""

import json
import os
import sys
from collections import defaultdict
from typing import Dict, List, Tuple

import numpy as np
from scipy.ndimage import gaussian_filter1d

from .core.constants import EVENT_LOG_FILE, REPORT_FILE, FIGURE_FILE


# Width of the time bins used for birth/death rates, in years
RATE_BIN = 0.1


# =============================================================================
# DATA LOADING
# =============================================================================

def load_events(filepath: str) -> List[dict]:
    """Load events from JSONL file, skipping lines that are not valid JSON."""
    events = []
    with open(filepath, 'r') as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                events.append(json.loads(line))
            except json.JSONDecodeError:
                print(f"[Analysis] Skipping malformed line: {line[:60]}")
    return events


def extract_time_series(events: List[dict]) -> dict:
    """Extract time series from events."""
    data = {
        'times': [],
        'population': [],
        'mean_energy': [],
        'max_generation': [],
        'births': [],
        'deaths': [],
        'seasons': [],
        'refills': [],
    }

    birth_counts = defaultdict(int)
    death_counts = defaultdict(int)

    for e in events:
        etype = e.get('type')
        t = e.get('sim_time', 0.0)

        if etype == 'population':
            data['times'].append(t)
            data['population'].append(e.get('population', 0))
            data['mean_energy'].append(e.get('mean_energy', 0.0))
            data['max_generation'].append(e.get('max_generation', 0))

        elif etype == 'birth':
            data['births'].append({
                'time': t,
                'creature_id': e.get('creature_id'),
                'generation': e.get('generation', 0),
                'parents': e.get('parents') or [],
            })
            if e.get('parents'):
                birth_counts[int(t // RATE_BIN)] += 1

        elif etype == 'death':
            data['deaths'].append({
                'time': t,
                'creature_id': e.get('creature_id'),
                'cause': e.get('cause', 'unknown'),
                'age': e.get('age', 0.0),
                'generation': e.get('generation', 0),
            })
            death_counts[int(t // RATE_BIN)] += 1

        elif etype == 'season':
            data['seasons'].append({'time': t, 'season': e.get('season'), 'year': e.get('year', 0)})

        elif etype == 'refill':
            data['refills'].append({'time': t, 'added': e.get('added', 0)})

    data['birth_rate'] = dict(birth_counts)
    data['death_rate'] = dict(death_counts)

    return data


# =============================================================================
# DERIVATIVE ANALYSIS
# =============================================================================

def compute_derivatives(x: np.ndarray, t: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Compute first and second derivatives of a time series.

    Returns: (dx/dt, d²x/dt², smoothed_x)
    """
    if len(x) < 3:
        return np.array([]), np.array([]), x

    smoothed = gaussian_filter1d(x.astype(float), sigma=2)

    dt = np.diff(t)
    dt = np.where(dt == 0, 1, dt)
    dxdt = np.diff(smoothed) / dt

    if len(dxdt) > 1:
        dt2 = dt[:-1]
        d2xdt2 = np.diff(dxdt) / dt2
    else:
        d2xdt2 = np.array([])

    return dxdt, d2xdt2, smoothed


def analyze_population_dynamics(data: dict) -> dict:
    """Growth rate, stability and carrying-capacity estimate of the population."""
    if len(data['population']) < 3:
        return {}

    times = np.array(data['times'], dtype=float)
    counts = np.array(data['population'], dtype=float)
    dxdt, d2xdt2, smoothed = compute_derivatives(counts, times)

    results = {
        'times': times,
        'counts': counts,
        'smoothed': smoothed,
        'growth_rate': dxdt,
        'acceleration': d2xdt2,
        'mean_population': float(np.mean(counts)),
        'std_population': float(np.std(counts)),
        'max_population': float(np.max(counts)),
        'min_population': float(np.min(counts)),
        'final_population': float(counts[-1]),
        # Low variance in growth rate = stable
        'stability': 1.0 / (1.0 + float(np.std(dxdt))) if len(dxdt) > 0 else 0.0,
    }

    # Population where growth rate last crossed zero from above
    if len(dxdt) > 2:
        zero_crossings = np.where(np.diff(np.sign(dxdt)) < 0)[0]
        if len(zero_crossings) > 0:
            results['carrying_capacity_est'] = float(smoothed[zero_crossings[-1]])

    return results


def analyze_deaths(data: dict) -> dict:
    """Causes of death and lifespan statistics."""
    causes: Dict[str, int] = defaultdict(int)
    ages = []
    for d in data['deaths']:
        causes[d['cause']] += 1
        ages.append(d['age'])

    return {
        'total': len(data['deaths']),
        'causes': dict(causes),
        'mean_age': float(np.mean(ages)) if ages else 0.0,
        'max_age': float(np.max(ages)) if ages else 0.0,
    }


def analyze_generations(data: dict) -> dict:
    """How deep lineages got, from births and population snapshots."""
    generations = [b['generation'] for b in data['births']]
    bred = [b for b in data['births'] if b['parents']]
    return {
        'total_births': len(data['births']),
        'bred_births': len(bred),
        'random_births': len(data['births']) - len(bred),
        'max_generation': max(generations, default=0),
        'mean_generation': float(np.mean(generations)) if generations else 0.0,
    }


# =============================================================================
# REPORT
# =============================================================================

def generate_report(data: dict, pop_dynamics: dict, deaths: dict, generations: dict) -> str:
    lines = []
    lines.append("=" * 80)
    lines.append("  EVOLV WORLD SIMULATION ANALYSIS")
    lines.append("=" * 80)
    lines.append("")

    span = data['times'][-1] - data['times'][0] if len(data['times']) > 1 else 0.0
    lines.append(f"  Population snapshots: {len(data['population'])} over {span:.3f} years")
    lines.append(f"  Seasons observed:     {len(data['seasons'])}")
    lines.append(f"  Refills:              {len(data['refills'])} "
                 f"({sum(r['added'] for r in data['refills'])} creatures)")
    lines.append("")

    lines.append("-" * 80)
    lines.append("  POPULATION DYNAMICS")
    lines.append("-" * 80)
    if pop_dynamics:
        lines.append(f"  Mean population:  {pop_dynamics['mean_population']:.1f} "
                     f"(std {pop_dynamics['std_population']:.1f})")
        lines.append(f"  Range:            {pop_dynamics['min_population']:.0f} .. "
                     f"{pop_dynamics['max_population']:.0f}")
        lines.append(f"  Final population: {pop_dynamics['final_population']:.0f}")
        lines.append(f"  Stability:        {pop_dynamics['stability']:.3f}")
        if 'carrying_capacity_est' in pop_dynamics:
            lines.append(f"  Carrying capacity (est): {pop_dynamics['carrying_capacity_est']:.1f}")
    else:
        lines.append("  Not enough population snapshots")
    lines.append("")

    lines.append("-" * 80)
    lines.append("  BIRTHS & GENERATIONS")
    lines.append("-" * 80)
    lines.append(f"  Births: {generations['total_births']} "
                 f"({generations['bred_births']} bred, {generations['random_births']} random)")
    lines.append(f"  Deepest generation: {generations['max_generation']}")
    lines.append(f"  Mean generation at birth: {generations['mean_generation']:.2f}")
    lines.append("")

    lines.append("-" * 80)
    lines.append("  DEATHS")
    lines.append("-" * 80)
    lines.append(f"  Deaths: {deaths['total']}")
    for cause, count in sorted(deaths['causes'].items(), key=lambda x: -x[1]):
        lines.append(f"    {cause:<12} {count}")
    lines.append(f"  Mean age at death: {deaths['mean_age']:.4f} years "
                 f"(max {deaths['max_age']:.4f})")
    lines.append("")
    lines.append("=" * 80)
    lines.append("  END OF ANALYSIS")
    lines.append("=" * 80)

    return "\n".join(lines)


# =============================================================================
# PLOTTING
# =============================================================================

def generate_plots(data: dict, pop_dynamics: dict, deaths: dict, output_path: str):
    """Generate analysis plots."""
    import matplotlib
    matplotlib.use('Agg')  # Non-interactive backend
    import matplotlib.pyplot as plt

    fig, axes = plt.subplots(2, 2, figsize=(12, 9))
    fig.suptitle('evolv_world Simulation Analysis', fontsize=14, fontweight='bold')

    # 1. Population time series
    ax = axes[0, 0]
    if pop_dynamics:
        ax.plot(pop_dynamics['times'], pop_dynamics['counts'], alpha=0.4, label='raw')
        ax.plot(pop_dynamics['times'], pop_dynamics['smoothed'], linewidth=2, label='smoothed')
        ax.legend(fontsize=8)
    ax.set_xlabel('Year')
    ax.set_ylabel('Population')
    ax.set_title('Population Dynamics')
    ax.grid(True, alpha=0.3)

    # 2. Birth / death rates
    ax = axes[0, 1]
    for key, label in (('birth_rate', 'births'), ('death_rate', 'deaths')):
        rate = data[key]
        if rate:
            bins = sorted(rate)
            ax.plot([b * RATE_BIN for b in bins], [rate[b] for b in bins], label=label)
    ax.set_xlabel('Year')
    ax.set_ylabel(f'Events per {RATE_BIN} years')
    ax.set_title('Birth and Death Rates')
    if data['birth_rate'] or data['death_rate']:
        ax.legend(fontsize=8)
    ax.grid(True, alpha=0.3)

    # 3. Generation depth
    ax = axes[1, 0]
    if data['max_generation']:
        ax.plot(data['times'], data['max_generation'], 'g-', linewidth=2)
    ax.set_xlabel('Year')
    ax.set_ylabel('Max generation')
    ax.set_title('Lineage Depth')
    ax.grid(True, alpha=0.3)

    # 4. Death causes pie chart
    ax = axes[1, 1]
    if deaths['causes']:
        labels = list(deaths['causes'].keys())
        sizes = list(deaths['causes'].values())
        ax.pie(sizes, labels=labels, autopct='%1.1f%%', startangle=90)
    ax.set_title('Causes of Death')

    plt.tight_layout()
    plt.savefig(output_path, dpi=120, bbox_inches='tight')
    plt.close(fig)
    print(f"[Analysis] Saved plots to {output_path}")


# =============================================================================
# MAIN
# =============================================================================

def run_analysis(event_file: str, report_path: str = REPORT_FILE,
                 figure_path: str = FIGURE_FILE) -> str:
    """Analyze one event log, write the report and figure, return the report text."""
    print(f"[Analysis] Loading events from {event_file}...")
    events = load_events(event_file)
    print(f"[Analysis] Loaded {len(events)} events")
    if not events:
        raise ValueError(f"no events found in {event_file}")

    data = extract_time_series(events)
    pop_dynamics = analyze_population_dynamics(data)
    deaths = analyze_deaths(data)
    generations = analyze_generations(data)

    report = generate_report(data, pop_dynamics, deaths, generations)
    for path in (report_path, figure_path):
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
    with open(report_path, 'w') as f:
        f.write(report)
    print(f"[Analysis] Saved report to {report_path}")

    generate_plots(data, pop_dynamics, deaths, figure_path)
    return report


def main(argv: List[str] = None):
    """Main analysis entry point."""
    argv = sys.argv[1:] if argv is None else argv
    event_file = argv[0] if argv else EVENT_LOG_FILE

    if not os.path.exists(event_file):
        print("Usage: python -m evolv_world.analyze_simulation [path/to/event_log.jsonl]")
        print(f"\nNo event log found at {event_file}")
        sys.exit(1)

    try:
        report = run_analysis(event_file)
    except ValueError as e:
        print(f"[Error] {e}")
        sys.exit(1)
    print()
    print(report)


if __name__ == "__main__":
    main()
