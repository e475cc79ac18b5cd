# simulation/contacts.py
"""
Génération des événements de contact (connexion établie / coupée).

Les contacts proviennent soit d'une suite d'instantanés d'adjacence (un par pas
de temps), soit d'une trace (voir data.loader).
"""
from dataclasses import dataclass
from itertools import groupby

import networkx as nx
import numpy as np


@dataclass(frozen=True)
class ContactEvent:
    """
    Événement de contact entre deux nœuds.

    Attributes:
        time: instant de l'événement (s)
        a: ID du premier nœud
        b: ID du second nœud
        up: True à l'établissement, False à la coupure
    """
    time: float
    a: int
    b: int
    up: bool


def create_static_network(num_nodes: int, connectivity: float, seed: int = None) -> dict:
    """
    Crée un réseau aléatoire (Erdős–Rényi) avec la connectivité spécifiée.

    Args:
        num_nodes: Nombre de nœuds dans le réseau
        connectivity: Probabilité de connexion entre deux nœuds (0-1)
        seed: Graine aléatoire

    Returns:
        dict: Dictionnaire d'adjacence représentant le réseau
    """
    # Graphe non orienté pour assurer la symétrie des liens
    G = nx.gnp_random_graph(num_nodes, connectivity, seed=seed)
    return {i: set(G.neighbors(i)) for i in range(num_nodes)}


def create_dynamic_network(num_nodes: int, base_connectivity: float, time_window: int,
                           seed: int = None) -> list:
    """
    Crée une série de réseaux dynamiques qui changent au fil du temps.

    Args:
        num_nodes: Nombre de nœuds dans le réseau
        base_connectivity: Connectivité de base entre les nœuds
        time_window: Nombre de pas de temps à simuler
        seed: Graine aléatoire

    Returns:
        list: Liste des dictionnaires d'adjacence pour chaque pas de temps
    """
    rng = np.random.default_rng(seed)
    networks = []
    for _ in range(time_window):
        # Varier légèrement la connectivité pour simuler le mouvement des nœuds
        connectivity = min(1.0, base_connectivity * (0.8 + 0.4 * rng.random()))
        graph_seed = int(rng.integers(0, 2**31 - 1))
        networks.append(create_static_network(num_nodes, connectivity, graph_seed))
    return networks


def _edges(adjacency: dict) -> set:
    return {(min(i, j), max(i, j)) for i, neigh in adjacency.items() for j in neigh if i != j}


def adjacency_to_events(snapshots: list, step_duration: float) -> list:
    """
    Convertit une suite d'instantanés d'adjacence en événements de contact.

    Le pas t correspond à l'instant t * step_duration. Les coupures précèdent
    les établissements à un même instant.

    Returns:
        list(ContactEvent): événements triés par instant
    """
    events = []
    previous = set()
    for t, adjacency in enumerate(snapshots):
        now = t * step_duration
        current = _edges(adjacency)
        events.extend(ContactEvent(now, a, b, False) for a, b in sorted(previous - current))
        events.extend(ContactEvent(now, a, b, True) for a, b in sorted(current - previous))
        previous = current
    return events


def group_events_by_time(events: list) -> list:
    """
    Regroupe les événements par instant.

    Returns:
        list: paires (instant, liste d'événements) triées par instant
    """
    ordered = sorted(events, key=lambda e: (e.time, e.up))
    return [(time, list(group)) for time, group in groupby(ordered, key=lambda e: e.time)]
