# simulation/metrics.py
"""
Métriques de performance des routeurs DTN, collectées par observation des
événements de messages (création, transferts, suppressions).
"""
import os
from dataclasses import dataclass, asdict

import numpy as np
import pandas as pd
from tabulate import tabulate


@dataclass
class DeliveryMetrics:
    """Métriques globales d'une simulation.

    Attributes:
        created: Nombre de messages créés
        started: Nombre de transferts démarrés
        relayed: Nombre de transferts terminés
        aborted: Nombre de transferts interrompus
        dropped: Nombre de messages abandonnés (buffer plein, TTL)
        delivered: Nombre de messages livrés
        delivery_prob: Ratio de livraison
        overhead_ratio: (relayés - livrés) / livrés
        latency_avg: Délai moyen de livraison (s)
        latency_median: Délai médian de livraison (s)
        hopcount_avg: Nombre moyen de sauts des messages livrés
    """
    created: int
    started: int
    relayed: int
    aborted: int
    dropped: int
    delivered: int
    delivery_prob: float
    overhead_ratio: float
    latency_avg: float
    latency_median: float
    hopcount_avg: float


class MessageStatsReport:
    """
    Observateur des événements de messages d'une simulation.
    """

    def __init__(self, clock):
        self.clock = clock
        self.creation_times = {}
        self.deliveries = {}   # id -> (instant, sauts)
        self.started = 0
        self.relayed = 0
        self.aborted = 0
        self.dropped = 0

    #*************** Événements ****************
    def new_message(self, msg):
        self.creation_times[msg.id] = msg.created_at

    def message_transfer_started(self, msg, from_node, to_node):
        self.started += 1

    def message_transferred(self, msg, from_node, to_node, first_delivery):
        self.relayed += 1
        if first_delivery:
            self.deliveries[msg.id] = (self.clock.get_time(), msg.hop_count)

    def message_transfer_aborted(self, msg, from_node, to_node):
        self.aborted += 1

    def message_deleted(self, msg, where, dropped):
        if dropped:
            self.dropped += 1

    #*************** Résultats ****************
    def to_dataframe(self) -> pd.DataFrame:
        """
        Returns:
            pd.DataFrame: une ligne par message créé (livraison, délai, sauts)
        """
        rows = []
        for msg_id, created in self.creation_times.items():
            delivered = self.deliveries.get(msg_id)
            rows.append({
                'message': msg_id,
                'created': created,
                'delivered': delivered is not None,
                'latency': delivered[0] - created if delivered else np.nan,
                'hops': delivered[1] if delivered else np.nan,
            })
        return pd.DataFrame(rows, columns=['message', 'created', 'delivered', 'latency', 'hops'])

    def summary(self) -> DeliveryMetrics:
        df = self.to_dataframe()
        created = len(df)
        delivered = int(df['delivered'].sum()) if created else 0
        latencies = df['latency'].dropna()
        hops = df['hops'].dropna()

        return DeliveryMetrics(
            created=created,
            started=self.started,
            relayed=self.relayed,
            aborted=self.aborted,
            dropped=self.dropped,
            delivered=delivered,
            delivery_prob=delivered / created if created else 0.0,
            overhead_ratio=(self.relayed - delivered) / delivered if delivered else float('inf'),
            latency_avg=float(latencies.mean()) if len(latencies) else float('inf'),
            latency_median=float(latencies.median()) if len(latencies) else float('inf'),
            hopcount_avg=float(hops.mean()) if len(hops) else 0.0,
        )

    def save_csv(self, path: str):
        os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
        self.to_dataframe().to_csv(path, index=False)


def generate_comparative_table(results: dict, table_format: str = 'grid') -> str:
    """
    Génère un tableau comparatif des résultats de plusieurs routeurs.

    Args:
        results (dict): nom du routeur -> DeliveryMetrics
        table_format (str): Format du tableau ('grid', 'pretty', 'markdown', etc.)

    Returns:
        str: Tableau formaté prêt à être affiché
    """
    headers = ['Routeur', 'Créés', 'Livrés', 'Ratio', 'Relayés',
               'Abandonnés', 'Overhead', 'Délai moyen (s)', 'Sauts']

    def fmt(value, spec):
        return format(value, spec) if value != float('inf') else "N/A"

    table_data = []
    for name, m in results.items():
        table_data.append([
            name,
            m.created,
            m.delivered,
            f"{m.delivery_prob:.3f}",
            m.relayed,
            m.dropped,
            fmt(m.overhead_ratio, '.2f'),
            fmt(m.latency_avg, '.1f'),
            f"{m.hopcount_avg:.2f}",
        ])
    return tabulate(table_data, headers=headers, tablefmt=table_format)


def metrics_to_dataframe(results: dict) -> pd.DataFrame:
    """Tableau des métriques (une ligne par routeur), pour export CSV."""
    return pd.DataFrame([{'router': name, **asdict(m)} for name, m in results.items()])
