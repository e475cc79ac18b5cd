#!/usr/bin/env python3
# protocols/predictability.py
"""
Table des probabilités de livraison d'un nœud.

Chaque nœud maintient, pour chaque pair connu, une probabilité P(a,b) dans
[0, 1] estimant ses chances de livrer un message à b, directement ou par
transitivité, ainsi que l'instant de sa dernière rencontre avec b.

Vieillissement: à chaque lecture, les probabilités sont vieillies selon le
nombre k d'unités de temps écoulées depuis le dernier vieillissement:
- mode 'power' (défaut): P(a,b) = P(a,b)_ancien ^ k
- mode 'gamma': P(a,b) = P(a,b)_ancien * AGING_BASE ^ k (PRoPHET classique)

Le vieillissement est paresseux (déclenché par les lectures) et non piloté par
une horloge: il n'existe pas de fil d'exécution indépendant pour le temps simulé.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np

from config import ConfigurationError

logger = logging.getLogger(__name__)

AGING_BASE = 0.999885791
AGING_POWER = 'power'
AGING_GAMMA = 'gamma'


@dataclass
class PeerRecord:
    """
    État connu d'un pair.

    Attributes:
        peer_id: ID du pair
        predictability: probabilité de livraison courante (directe ou transitive)
        last_encounter: instant de la dernière rencontre, None si jamais rencontré
        availability: dernière probabilité issue d'une rencontre directe
    """
    peer_id: Any
    predictability: float = 0.0
    last_encounter: Optional[float] = None
    availability: float = 0.0


class PredictabilityStore:
    """
    Probabilités de livraison d'un nœud vers chacun des pairs connus.

    Les enregistrements sont créés à la première rencontre ou à la première mise
    à jour transitive et ne sont jamais supprimés.
    """

    def __init__(self, seconds_in_time_unit: float, clock, aging_mode: str = AGING_POWER):
        """
        Args:
            seconds_in_time_unit (float): durée d'une unité de temps de vieillissement (s)
            clock (callable): retourne l'instant de simulation courant
            aging_mode (str, optional): 'power' ou 'gamma'. Par défaut 'power'.
        """
        if seconds_in_time_unit is None or seconds_in_time_unit <= 0:
            raise ConfigurationError(
                f"secondsInTimeUnit doit être strictement positif (reçu {seconds_in_time_unit})")
        if aging_mode not in (AGING_POWER, AGING_GAMMA):
            raise ConfigurationError(f"Mode de vieillissement inconnu: {aging_mode}")

        self.seconds_in_time_unit = seconds_in_time_unit
        self.clock = clock
        self.aging_mode = aging_mode
        self.records: Dict[Any, PeerRecord] = {}
        self.last_age_update = 0.0

    def __len__(self):
        return len(self.records)

    def __contains__(self, peer):
        return peer in self.records

    def _record(self, peer) -> PeerRecord:
        record = self.records.get(peer)
        if record is None:
            record = PeerRecord(peer)
            self.records[peer] = record
        return record

    #*************** Vieillissement ****************
    def age_all(self, current_time: float = None):
        """
        Vieillit toutes les probabilités selon le temps écoulé depuis le
        dernier vieillissement. Sans effet si aucun temps ne s'est écoulé.

        Args:
            current_time (float, optional): instant courant, borné par l'horloge.
                Par défaut l'horloge.
        """
        now = self.clock()
        if current_time is not None:
            # last_age_update ne dépasse jamais le temps simulé
            now = min(current_time, now)
        if now <= self.last_age_update:
            return

        elapsed_units = (now - self.last_age_update) / self.seconds_in_time_unit
        if self.records:
            records = list(self.records.values())
            values = np.fromiter((r.predictability for r in records), dtype=float, count=len(records))
            if self.aging_mode == AGING_POWER:
                values = np.power(values, elapsed_units)
            else:
                values = values * (AGING_BASE ** elapsed_units)
            values = np.clip(values, 0.0, 1.0)
            for record, value in zip(records, values):
                record.predictability = float(value)

        self.last_age_update = now

    #*************** Lecture ****************
    def get_predictability(self, peer) -> float:
        """
        Probabilité de livraison vers un pair (0.0 si inconnu), après vieillissement.
        """
        self.age_all()
        record = self.records.get(peer)
        return record.predictability if record is not None else 0.0

    def get_last_encounter_time(self, peer) -> float:
        """Instant de la dernière rencontre, ou 0 si le pair n'a jamais été rencontré."""
        record = self.records.get(peer)
        if record is None or record.last_encounter is None:
            return 0.0
        return record.last_encounter

    def has_met(self, peer) -> bool:
        record = self.records.get(peer)
        return record is not None and record.last_encounter is not None

    def get_availability(self, peer) -> float:
        record = self.records.get(peer)
        return record.availability if record is not None else 0.0

    def snapshot(self) -> dict:
        """
        Copie des probabilités courantes (après vieillissement), pair -> valeur.
        """
        self.age_all()
        return {peer: record.predictability for peer, record in self.records.items()}

    #*************** Mutateurs internes ****************
    def set_predictability(self, peer, value: float):
        # Garantir que la valeur reste dans l'intervalle [0, 1]
        self._record(peer).predictability = min(1.0, max(0.0, float(value)))

    def set_last_encounter_time(self, peer, time: float):
        self._record(peer).last_encounter = time

    def set_availability(self, peer, value: float):
        self._record(peer).availability = min(1.0, max(0.0, float(value)))
