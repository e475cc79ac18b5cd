# protocols/forwarding.py
"""
Décision de transfert par comparaison des probabilités (GRTRMax).

Une paire (message, connexion) est candidate si le pair de la connexion
annonce une probabilité de livraison vers la destination du message au moins
égale à celle du nœud local. Les candidats sont triés par probabilité du pair,
décroissante. Le tri est stable: entre candidats de même score, l'ordre de
génération (connexions puis messages) est conservé.
"""
from dataclasses import dataclass
from enum import Enum


class ForwardingPhase(Enum):
    """Étapes d'un pas de décision du routeur."""
    IDLE = 'idle'
    CHECK_DIRECT_DELIVERY = 'direct'
    SPRAY_ELIGIBLE = 'spray'
    OPPORTUNISTIC_RELAY = 'relay'


@dataclass(frozen=True)
class ForwardCandidate:
    """Paire (message, connexion) proposée au moteur de transfert."""
    message: object
    connection: object
    score: float


def relay_candidates(messages, contacts, own_predictability) -> list:
    """
    Génère et trie les candidats au relais opportuniste.

    Args:
        messages (list): messages détenus, hors messages en phase de diffusion
        contacts (list): paires (connexion, PeerView) des pairs connectés
        own_predictability (callable): destination -> probabilité du nœud local

    Returns:
        list(ForwardCandidate): candidats triés par probabilité décroissante du pair
    """
    candidates = []
    for con, peer in contacts:
        if peer.is_transferring():
            continue  # Pair occupé: ignoré pour ce pas

        for msg in messages:
            if peer.has_message(msg.id):
                continue
            p_peer = peer.get_predictability(msg.destination)
            if p_peer >= own_predictability(msg.destination):
                candidates.append(ForwardCandidate(msg, con, p_peer))

    candidates.sort(key=lambda c: c.score, reverse=True)
    return candidates
