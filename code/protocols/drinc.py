#!/usr/bin/env python3
# protocols/drinc.py
"""
Implémentation du routeur DRINC: routage probabiliste à nombre de copies limité
pour les réseaux tolérants aux délais (DTN), dérivé de PRoPHETv2.

Principe:
1. Chaque nœud maintient une probabilité de livraison P(a,b) vers chaque pair
   connu, vieillie avec le temps simulé (voir protocols.predictability).
2. À chaque rencontre:
   - mise à jour directe selon l'intervalle depuis la dernière rencontre
   - mise à jour transitive P(a,c) = P(a,b) * P(b,c) si elle améliore P(a,c)
3. À chaque pas, si aucun transfert n'est en cours:
   - livraison directe aux destinations connectées
   - diffusion des messages disposant encore de copies (> 1)
   - relais des autres messages vers les pairs dont P(pair, dest) >= P(local, dest),
     par probabilité décroissante du pair

Seuls des routeurs DRINC peuvent échanger leurs probabilités: rencontrer un pair
utilisant une autre stratégie lève IncompatibleRouterError.
"""
import logging

from config import DRINC_NS, get_setting
from protocols.base import DTNRouter, IncompatibleRouterError, PeerView
from protocols.copies import CopyManager
from protocols.encounter import EncounterUpdater, P_ENC_MAX, I_TYP
from protocols.forwarding import ForwardingPhase, relay_candidates
from protocols.predictability import AGING_POWER, PredictabilityStore
from protocols.transitive import TransitivePropagator

logger = logging.getLogger(__name__)

SECONDS_IN_UNIT_S = 'secondsInTimeUnit'
NROF_COPIES = 'nrofCopies'
AGING_MODE_S = 'agingMode'
P_ENC_MAX_S = 'pEncMax'
TYPICAL_INTERVAL_S = 'typicalInterval'


class DrincRouter(DTNRouter):
    """
    Routeur DRINC: probabilités de livraison transitives et diffusion à copies limitées.
    """

    def __init__(self, settings: dict = None):
        """
        Args:
            settings (dict, optional): Configuration. Les clés DRINC.secondsInTimeUnit
                et DRINC.nrofCopies sont obligatoires.

        Raises:
            ConfigurationError: si un paramètre obligatoire est absent
        """
        super().__init__(settings)
        self.seconds_in_time_unit = get_setting(DRINC_NS, SECONDS_IN_UNIT_S, settings)
        self.initial_nrof_copies = get_setting(DRINC_NS, NROF_COPIES, settings)
        self.aging_mode = get_setting(DRINC_NS, AGING_MODE_S, settings, default=AGING_POWER)
        self.p_enc_max = get_setting(DRINC_NS, P_ENC_MAX_S, settings, default=P_ENC_MAX)
        self.typical_interval = get_setting(DRINC_NS, TYPICAL_INTERVAL_S, settings, default=I_TYP)

        self.store = PredictabilityStore(self.seconds_in_time_unit, self.get_time, self.aging_mode)
        self.encounters = EncounterUpdater(self.store, self.p_enc_max, self.typical_interval)
        self.copies = CopyManager(self.initial_nrof_copies)
        self.propagator = None
        self.last_phase = ForwardingPhase.IDLE

    def init(self, host, clock, listeners=None, rng=None):
        super().init(host, clock, listeners, rng)
        self.propagator = TransitivePropagator(self.store, host.id)

    def replicate(self):
        return DrincRouter(self.settings)

    def _peer_view(self, node) -> PeerView:
        if not isinstance(node.router, DrincRouter):
            raise IncompatibleRouterError(
                f"DrincRouter ne fonctionne qu'avec des routeurs du même type "
                f"(nœud {node.id}: {type(node.router).__name__})")
        return PeerView(node.router)

    #*************** Événements ****************
    def changed_connection(self, con):
        if not con.is_up():
            return
        other = con.get_other_node(self.host)
        peer = self._peer_view(other)
        self.encounters.update_direct(other.id, self.get_time())
        self.propagator.propagate_via(other.id, peer.get_all_predictabilities())

    def create_new_message(self, msg) -> bool:
        # Marqué seulement une fois accepté: un message refusé reste réutilisable
        if not super().create_new_message(msg):
            return False
        self.copies.on_message_created(msg)
        return True

    def message_transferred(self, msg_id: str, from_node):
        msg = super().message_transferred(msg_id, from_node)
        if self.get_message(msg_id) is not None:
            self.copies.on_message_received(msg)
        else:
            self.copies.check_marker(msg)  # livré à destination, non conservé
        return msg

    def transfer_done(self, con):
        msg_id = con.get_message().id
        # Message supprimé du buffer après le début du transfert: rien à décompter
        if self.get_message(msg_id) is None:
            return
        self.copies.on_transfer_completed(msg_id)

    def message_removed(self, msg):
        self.copies.forget(msg.id)

    #*************** Requêtes entre pairs ****************
    def get_predictability(self, destination) -> float:
        return self.store.get_predictability(destination)

    def get_all_predictabilities(self) -> dict:
        return self.store.snapshot()

    def get_copies_left(self, msg_id: str):
        return self.copies.get_copies_left(msg_id)

    #*************** Décision de transfert ****************
    def update(self):
        super().update()
        self.last_phase = ForwardingPhase.IDLE
        if not self.can_start_transfer() or self.is_transferring():
            return  # Rien à transférer ou transfert déjà en cours

        # Messages livrables directement à leur destination
        self.last_phase = ForwardingPhase.CHECK_DIRECT_DELIVERY
        if self.exchange_deliverable_messages() is not None:
            return

        self.last_phase = ForwardingPhase.SPRAY_ELIGIBLE
        spray = self.sort_by_queue_mode(
            self.copies.eligible_for_spraying(self.get_message_collection()))
        if spray:
            self.try_messages_to_connections(spray, self.get_connections())

        self.last_phase = ForwardingPhase.OPPORTUNISTIC_RELAY
        spray_ids = {msg.id for msg in spray}
        others = [msg for msg in self.get_message_collection() if msg.id not in spray_ids]
        self.try_other_messages(others)

    def try_other_messages(self, messages):
        """
        Tente d'envoyer les messages aux pairs connectés qui ont une meilleure
        probabilité de livraison, par ordre de probabilité décroissante.

        Returns:
            tuple: la paire (message, connexion) retenue, ou None
        """
        contacts = [(con, self._peer_view(con.get_other_node(self.host)))
                    for con in self.get_connections()]
        candidates = relay_candidates(messages, contacts, self.get_predictability)
        if not candidates:
            return None
        return self.try_messages_for_connected([(c.message, c.connection) for c in candidates])

    #*************** Diagnostic ****************
    def get_routing_info(self) -> str:
        """
        Résumé lisible de l'état du routeur: probabilités (6 décimales) et
        disponibilités directes de chaque pair.
        """
        preds = self.store.snapshot()
        lines = [super().get_routing_info(), f"  {len(preds)} delivery prediction(s)"]
        for peer, value in preds.items():
            lines.append(f"    {peer} : {value:.6f} "
                         f"(direct {self.store.get_availability(peer):.6f})")
        return "\n".join(lines)

    def __str__(self):
        return (f"DRINC (copies={self.initial_nrof_copies}, "
                f"unité={self.seconds_in_time_unit}s, vieillissement={self.aging_mode})")
