# protocols/encounter.py
"""
Mise à jour directe des probabilités lors d'une rencontre.

P(a,b) = P(a,b)_ancien + (1 - P(a,b)_ancien) * PEnc(intvl)

PEnc(intvl) = P_ENC_MAX * (intvl / I_TYP)   pour 0 <= intvl < I_TYP

Au-delà de l'intervalle typique, la probabilité est érodée:
P(a,b) = P(a,b)_ancien ^ (intvl / I_TYP)

Une première rencontre donne directement P_ENC_MAX.
"""
import logging

logger = logging.getLogger(__name__)

P_ENC_MAX = 0.9
I_TYP = 7200.0  # Intervalle typique entre deux rencontres (s)


class EncounterUpdater:
    """
    Calcule la nouvelle probabilité directe d'un pair rencontré.
    """

    def __init__(self, store, p_enc_max: float = P_ENC_MAX, typical_interval: float = I_TYP):
        """
        Args:
            store (PredictabilityStore): table du nœud local
            p_enc_max (float, optional): probabilité maximale par rencontre. Par défaut 0.9.
            typical_interval (float, optional): intervalle typique (s). Par défaut 7200.
        """
        if not 0.0 < p_enc_max <= 1.0:
            raise ValueError(f"p_enc_max doit être dans ]0, 1] (reçu {p_enc_max})")
        if typical_interval <= 0:
            raise ValueError(f"typical_interval doit être positif (reçu {typical_interval})")
        self.store = store
        self.p_enc_max = p_enc_max
        self.typical_interval = typical_interval

    def update_direct(self, peer, now: float) -> float:
        """
        Met à jour la probabilité directe vers un pair qui vient d'être rencontré.

        Args:
            peer: ID du pair rencontré
            now (float): instant de la rencontre

        Returns:
            float: la nouvelle probabilité
        """
        met_before = self.store.has_met(peer)
        last_enc = self.store.get_last_encounter_time(peer)
        old_value = self.store.get_predictability(peer)  # vieillit toute la table

        if not met_before:
            new_value = self.p_enc_max
        else:
            interval = now - last_enc
            if interval < self.typical_interval:
                p_enc = self.p_enc_max * (interval / self.typical_interval)
                new_value = old_value + (1 - old_value) * p_enc
            else:
                new_value = old_value ** (interval / self.typical_interval)

        self.store.set_predictability(peer, new_value)
        self.store.set_availability(peer, new_value)
        self.store.set_last_encounter_time(peer, now)

        logger.debug("Rencontre avec %s à t=%.0f: P %.6f -> %.6f", peer, now, old_value, new_value)
        return new_value
