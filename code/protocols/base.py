#!/usr/bin/env python3
# protocols/base.py
"""
Classe de base pour les routeurs DTN (Delay-Tolerant Networking).

Un routeur est attaché à un seul nœud. La classe de base fournit les services
communs à toutes les stratégies de routage:
- gestion du buffer (admission, éviction des plus anciens, expiration TTL)
- négociation et exécution des transferts sur les connexions actives
- interface de requête entre pairs (lecture seule)

Les stratégies concrètes (DrincRouter, SprayAndWaitRouter) décident quels
messages envoyer à qui dans update().
"""
import logging
import random

from config import ConfigurationError, get_setting
from models.connection import (RCV_OK, TRY_LATER_BUSY, DENIED_OLD,
                               DENIED_NO_SPACE, DENIED_TTL)

logger = logging.getLogger(__name__)

ROUTER_NS = 'router'
Q_MODE_RANDOM = 'random'
Q_MODE_FIFO = 'fifo'


class IncompatibleRouterError(TypeError):
    """Le routeur d'un pair n'implémente pas la stratégie attendue."""


class CopyCountMissingError(AssertionError):
    """Un message ne porte pas le compteur de copies attendu (violation d'invariant)."""


class PeerView:
    """
    Vue en lecture seule sur le routeur d'un pair.

    Seules les requêtes de l'interface entre pairs sont exposées; l'état du pair
    reste la propriété exclusive de son nœud. L'ordonnancement global de la
    simulation garantit que deux nœuds ne s'exécutent jamais en même temps.
    """
    __slots__ = ('_router',)

    def __init__(self, router):
        self._router = router

    @property
    def node_id(self):
        return self._router.host.id

    def get_predictability(self, destination) -> float:
        return self._router.get_predictability(destination)

    def get_all_predictabilities(self) -> dict:
        return dict(self._router.get_all_predictabilities())

    def is_transferring(self) -> bool:
        return self._router.is_transferring()

    def has_message(self, msg_id: str) -> bool:
        return self._router.has_message(msg_id)


class DTNRouter:
    """
    Classe de base des routeurs DTN.
    Cette classe définit l'interface commune à toutes les stratégies de routage.
    """

    def __init__(self, settings: dict = None):
        """
        Initialise un routeur DTN.

        Args:
            settings (dict, optional): Configuration (voir config.CONFIG)
        """
        self.settings = settings
        self.buffer_size = get_setting(ROUTER_NS, 'buffer_size', settings, default=None)
        self.msg_ttl = get_setting(ROUTER_NS, 'msg_ttl', settings, default=None)
        self.queue_mode = get_setting(ROUTER_NS, 'queue_mode', settings, default=Q_MODE_RANDOM)
        if self.queue_mode not in (Q_MODE_RANDOM, Q_MODE_FIFO):
            raise ConfigurationError(f"Mode de file inconnu: {self.queue_mode}")

        self.host = None
        self.clock = None
        self.rng = random.Random()
        self.listeners = []

        self.messages = {}            # Buffer: id -> Message (ordre d'arrivée)
        self.incoming = {}            # Messages en cours de réception
        self.delivered = {}           # Messages livrés à ce nœud: id -> instant
        self.sending_connections = []  # Connexions sur lesquelles on émet

    def init(self, host, clock, listeners=None, rng=None):
        """
        Attache le routeur à son nœud et à l'horloge de simulation.

        Args:
            host (Node): nœud propriétaire
            clock (SimClock): horloge de simulation
            listeners (list, optional): observateurs des événements de messages
            rng (random.Random, optional): générateur aléatoire du nœud
        """
        self.host = host
        self.clock = clock
        self.listeners = list(listeners) if listeners else []
        if rng is not None:
            self.rng = rng

    def get_time(self) -> float:
        return self.clock.get_time()

    def replicate(self):
        """Crée un routeur vierge avec les mêmes paramètres (prototype)."""
        raise NotImplementedError("Cette méthode doit être implémentée par les sous-classes")

    def _notify(self, event: str, *args):
        for listener in self.listeners:
            handler = getattr(listener, event, None)
            if handler is not None:
                handler(*args)

    #*************** Buffer ****************
    def get_message_collection(self) -> list:
        return list(self.messages.values())

    def get_nrof_messages(self) -> int:
        return len(self.messages)

    def get_message(self, msg_id: str):
        return self.messages.get(msg_id)

    def has_message(self, msg_id: str) -> bool:
        """Vrai si le message est dans le buffer, en réception, ou déjà livré ici."""
        return msg_id in self.messages or msg_id in self.incoming or msg_id in self.delivered

    def is_delivered_message(self, msg_id: str) -> bool:
        return msg_id in self.delivered

    def get_free_buffer_size(self) -> float:
        """
        Place libre du buffer. La place des messages en cours de réception
        (hors messages dont ce nœud est la destination) est réservée.
        """
        if self.buffer_size is None:
            return float('inf')
        used = sum(m.size for m in self.messages.values())
        used += sum(m.size for m in self.incoming.values() if m.destination != self.host.id)
        return self.buffer_size - used

    def add_to_messages(self, msg, new_message: bool):
        self.messages[msg.id] = msg
        if new_message:
            self._notify('new_message', msg)

    def remove_from_messages(self, msg_id: str):
        msg = self.messages.pop(msg_id, None)
        if msg is not None:
            self.message_removed(msg)
        return msg

    def message_removed(self, msg):
        """Appelé quand un message quitte le buffer (suppression ou éviction)."""

    def delete_message(self, msg_id: str, drop: bool):
        """
        Supprime un message du buffer.

        Args:
            msg_id (str): identifiant du message
            drop (bool): True si le message est perdu (buffer plein, TTL)
        """
        msg = self.remove_from_messages(msg_id)
        if msg is None:
            return
        if drop:
            logger.debug("Nœud %s: message %s abandonné", self.host.id, msg_id)
        self._notify('message_deleted', msg, self.host, drop)

    def _is_sending(self, msg_id: str) -> bool:
        return any(con.message is not None and con.message.id == msg_id
                   for con in self.sending_connections)

    def make_room_for_message(self, size: int) -> bool:
        """
        Libère de la place en supprimant les messages les plus anciens
        (hors messages en cours d'émission).

        Returns:
            bool: True si la place nécessaire est disponible
        """
        if self.buffer_size is None:
            return True
        if size > self.buffer_size:
            return False

        free = self.get_free_buffer_size()
        while free < size:
            candidates = [m for m in self.messages.values() if not self._is_sending(m.id)]
            if not candidates:
                return False
            oldest = min(candidates, key=lambda m: m.received_at)
            self.delete_message(oldest.id, drop=True)
            free += oldest.size
        return True

    def drop_expired_messages(self):
        now = self.get_time()
        for msg in self.get_message_collection():
            if msg.is_expired(now):
                self.delete_message(msg.id, drop=True)

    #*************** Cycle de vie des messages ****************
    def create_new_message(self, msg) -> bool:
        """
        Ajoute au buffer un message créé localement.

        Returns:
            bool: True si le message a été accepté
        """
        if not self.make_room_for_message(msg.size):
            logger.warning("Nœud %s: pas de place pour le nouveau message %s", self.host.id, msg.id)
            return False
        if msg.ttl is None:
            msg.ttl = self.msg_ttl
        msg.received_at = self.get_time()
        self.add_to_messages(msg, True)
        return True

    def check_receiving(self, msg) -> int:
        if self.is_transferring():
            return TRY_LATER_BUSY
        if self.has_message(msg.id):
            return DENIED_OLD
        if msg.is_expired(self.get_time()):
            return DENIED_TTL
        if self.buffer_size is not None and msg.size > self.buffer_size:
            return DENIED_NO_SPACE
        if msg.destination != self.host.id and not self.make_room_for_message(msg.size):
            return DENIED_NO_SPACE
        return RCV_OK

    def receive_message(self, msg, from_node) -> int:
        """
        Négociation côté récepteur: accepte ou refuse un transfert entrant.

        Returns:
            int: RCV_OK, TRY_LATER_BUSY ou un code DENIED_*
        """
        retval = self.check_receiving(msg)
        if retval != RCV_OK:
            return retval
        self.incoming[msg.id] = msg.replicate()
        self._notify('message_transfer_started', msg, from_node, self.host)
        return RCV_OK

    def message_transferred(self, msg_id: str, from_node):
        """
        Termine la réception d'un message.

        Returns:
            Message: l'instance locale du message reçu
        """
        msg = self.incoming.pop(msg_id, None)
        if msg is None:
            raise KeyError(f"Aucun message {msg_id} en réception sur le nœud {self.host.id}")

        now = self.get_time()
        msg.received_at = now
        msg.path.append(self.host.id)

        first_delivery = msg.destination == self.host.id and msg_id not in self.delivered
        if msg.destination == self.host.id:
            self.delivered.setdefault(msg_id, now)
        else:
            self.add_to_messages(msg, False)

        self._notify('message_transferred', msg, from_node, self.host, first_delivery)
        return msg

    def message_aborted(self, msg_id: str, from_node):
        msg = self.incoming.pop(msg_id, None)
        if msg is not None:
            self._notify('message_transfer_aborted', msg, from_node, self.host)

    def transfer_done(self, con):
        """Appelé côté émetteur juste avant la finalisation d'un transfert."""

    #*************** Connexions et transferts ****************
    def changed_connection(self, con):
        """Appelé quand une connexion du nœud s'établit ou se coupe."""

    def get_connections(self) -> list:
        return [con for con in self.host.connections if con.is_up()]

    def is_transferring(self) -> bool:
        return any(con.is_transferring() for con in self.host.connections)

    def can_start_transfer(self) -> bool:
        return bool(self.messages) and bool(self.get_connections())

    def start_transfer(self, msg, con) -> int:
        if not con.is_ready_for_transfer():
            return TRY_LATER_BUSY
        retval = con.start_transfer(self.host, msg, self.get_time())
        if retval == RCV_OK:
            self.sending_connections.append(con)
        return retval

    def exchange_deliverable_messages(self):
        """
        Tente de livrer directement un message à sa destination finale.

        Returns:
            Connection: la connexion utilisée, ou None si aucun transfert n'a démarré
        """
        for con in self.get_connections():
            other = con.get_other_node(self.host)
            for msg in self.get_message_collection():
                if msg.destination != other.id:
                    continue
                if self.start_transfer(msg, con) == RCV_OK:
                    return con
        return None

    def try_all_messages(self, con, messages):
        """
        Tente d'envoyer les messages dans l'ordre sur une connexion.

        Returns:
            Message: le message dont le transfert a démarré, ou None
        """
        for msg in messages:
            retval = self.start_transfer(msg, con)
            if retval == RCV_OK:
                return msg
            if retval > 0:
                return None  # Occupé: inutile d'essayer les suivants
        return None

    def try_messages_to_connections(self, messages, connections):
        """
        Tente d'envoyer les messages sur chacune des connexions.

        Returns:
            Connection: la première connexion sur laquelle un transfert a démarré
        """
        for con in connections:
            if self.try_all_messages(con, messages) is not None:
                return con
        return None

    def try_messages_for_connected(self, tuples):
        """
        Tente les paires (message, connexion) dans l'ordre jusqu'au premier succès.

        Returns:
            tuple: la paire retenue, ou None si toutes ont échoué
        """
        for msg, con in tuples:
            if self.start_transfer(msg, con) == RCV_OK:
                return msg, con
        return None

    def sort_by_queue_mode(self, messages) -> list:
        messages = list(messages)
        if self.queue_mode == Q_MODE_RANDOM:
            self.rng.shuffle(messages)
        else:
            messages.sort(key=lambda m: m.received_at)
        return messages

    def update(self):
        """
        Pas de simulation: finalise les transferts terminés puis supprime
        les messages expirés. Les sous-classes décident ensuite des envois.
        """
        now = self.get_time()
        for con in list(self.sending_connections):
            if con.message is None or not con.is_up():
                self.sending_connections.remove(con)
            elif con.is_message_transferred(now):
                con.finalize_transfer()
                self.transfer_done(con)
                con.clear_transfer()
                self.sending_connections.remove(con)
        self.drop_expired_messages()

    #*************** Interface de requête entre pairs ****************
    def get_predictability(self, destination) -> float:
        raise IncompatibleRouterError(
            f"{type(self).__name__} ne maintient pas de probabilités de livraison")

    def get_all_predictabilities(self) -> dict:
        raise IncompatibleRouterError(
            f"{type(self).__name__} ne maintient pas de probabilités de livraison")

    def get_routing_info(self) -> str:
        host_id = self.host.id if self.host is not None else '?'
        return (f"{type(self).__name__} (nœud {host_id})\n"
                f"  {len(self.messages)} message(s) en buffer, "
                f"{len(self.delivered)} message(s) livré(s)")
