# protocols/transitive.py
"""
Mise à jour transitive (A -> B -> C) des probabilités de livraison.

P(a,c) = P(a,b) * P(b,c), retenue seulement si elle améliore P(a,c).
"""
import logging

logger = logging.getLogger(__name__)


class TransitivePropagator:
    """
    Propage la connaissance d'un pair rencontré vers la table locale.
    """

    def __init__(self, store, self_id):
        """
        Args:
            store (PredictabilityStore): table du nœud local
            self_id: ID du nœud local (jamais ajouté à sa propre table)
        """
        self.store = store
        self.self_id = self_id

    def propagate_via(self, peer, remote_preds: dict) -> int:
        """
        Met à jour les probabilités vers les tiers connus du pair.

        Args:
            peer: ID du pair B qui vient d'être rencontré
            remote_preds (dict): table (vieillie) du pair, C -> P(b,c)

        Returns:
            int: nombre de probabilités améliorées
        """
        p_ab = self.store.get_predictability(peer)
        updated = 0

        for other, p_bc in remote_preds.items():
            if other == self.self_id:
                continue
            p_old = self.store.get_predictability(other)
            p_new = p_ab * p_bc
            if p_new > p_old:
                self.store.set_predictability(other, p_new)
                updated += 1

        if updated:
            logger.debug("Nœud %s: %d probabilité(s) transitive(s) via %s",
                         self.self_id, updated, peer)
        return updated
