# simulation/visualize.py
import os

import matplotlib.pyplot as plt
import numpy as np


def plot_predictability_history(history, node_id, filename, max_peers: int = 8):
    """
    Trace l'évolution des probabilités de livraison d'un nœud vers ses pairs.

    Args:
        history (pd.DataFrame): probabilités par pas (index: temps, colonnes: pairs)
        node_id (int): nœud suivi (pour le titre)
        filename (str): chemin du fichier image
        max_peers (int, optional): nombre maximal de pairs tracés (les plus probables à la fin)
    """
    if history.empty:
        print("Pas d'historique de probabilités à tracer")
        return

    final = history.iloc[-1].sort_values(ascending=False)
    peers = list(final.index[:max_peers])

    plt.figure(figsize=(10, 6))
    for peer in peers:
        plt.plot(history.index / 3600.0, history[peer], label=f"P({node_id},{peer})")
    plt.xlabel('Temps (h)')
    plt.ylabel('Probabilité de livraison')
    plt.ylim(0, 1.05)
    plt.title(f"Évolution des probabilités de livraison du nœud {node_id}")
    plt.grid(True, linestyle='--', alpha=0.7)
    plt.legend(loc='upper right', fontsize='small')
    plt.tight_layout()

    os.makedirs(os.path.dirname(filename) or '.', exist_ok=True)
    plt.savefig(filename, bbox_inches='tight')
    plt.close()


def plot_latency_cdf(frames, filename):
    """
    Compare la distribution cumulée des délais de livraison de plusieurs routeurs.

    Args:
        frames (dict): nom du routeur -> DataFrame par message (voir MessageStatsReport)
        filename (str): chemin du fichier image
    """
    plt.figure(figsize=(10, 6))
    for name, df in frames.items():
        created = len(df)
        latencies = np.sort(df['latency'].dropna().to_numpy()) / 3600.0
        if created == 0 or len(latencies) == 0:
            continue
        # Proportion des messages créés livrés avant chaque délai
        ratio = np.arange(1, len(latencies) + 1) / created
        plt.step(latencies, ratio, where='post', label=name)

    plt.xlabel('Délai de livraison (h)')
    plt.ylabel('Proportion de messages livrés')
    plt.title('Distribution cumulée des délais de livraison')
    plt.grid(True, alpha=0.3)
    plt.legend()
    plt.tight_layout()

    os.makedirs(os.path.dirname(filename) or '.', exist_ok=True)
    plt.savefig(filename, bbox_inches='tight')
    plt.close()
