#!/usr/bin/env python3
# protocols/spray_and_wait.py
"""
Implémentation du routeur Spray-and-Wait pour les réseaux tolérants aux délais (DTN).

Principe:
1. Phase Spray: À l'émission, la source initialise L copies.
   Lors d'une rencontre, un nœud avec >1 copies en donne la moitié à son pair
   (mode binaire) ou une seule (mode source).
2. Phase Wait: Dès qu'un nœud n'a plus qu'une seule copie, il attend de
   rencontrer directement la destination pour transmettre.

Contrairement à DRINC, le nombre de copies voyage avec le message: le
récepteur hérite de la part donnée par l'émetteur.

Ce routeur ne maintient pas de probabilités de livraison: il sert de référence
de comparaison et ne peut pas coopérer avec des nœuds DRINC.

Référence: Thrasyvoulos Spyropoulos, Konstantinos Psounis, Cauligi S. Raghavendra,
"Spray and Wait: An Efficient Routing Scheme for Intermittently Connected Mobile Networks"
"""
import math

from config import get_setting
from protocols.base import DTNRouter

SPRAY_NS = 'SprayAndWait'
MSG_COUNT_PROPERTY = SPRAY_NS + '.copies'


class SprayAndWaitRouter(DTNRouter):
    """
    Routeur Spray-and-Wait (binaire ou source).
    """

    def __init__(self, settings: dict = None):
        """
        Args:
            settings (dict, optional): Configuration. SprayAndWait.nrofCopies est obligatoire.
        """
        super().__init__(settings)
        self.initial_nrof_copies = get_setting(SPRAY_NS, 'nrofCopies', settings)
        self.binary = get_setting(SPRAY_NS, 'binaryMode', settings, default=True)

    def replicate(self):
        return SprayAndWaitRouter(self.settings)

    def create_new_message(self, msg) -> bool:
        if not super().create_new_message(msg):
            return False
        msg.add_property(MSG_COUNT_PROPERTY, self.initial_nrof_copies)
        return True

    def message_transferred(self, msg_id: str, from_node):
        msg = super().message_transferred(msg_id, from_node)
        copies = msg.get_property(MSG_COUNT_PROPERTY)
        assert copies is not None, f"Message Spray-and-Wait sans compteur: {msg}"

        # Le récepteur reçoit la moitié supérieure (binaire) ou une seule copie (source)
        msg.update_property(MSG_COUNT_PROPERTY, math.ceil(copies / 2) if self.binary else 1)
        return msg

    def transfer_done(self, con):
        msg = self.get_message(con.get_message().id)
        if msg is None or con.get_other_node(self.host).id == msg.destination:
            return
        copies = msg.get_property(MSG_COUNT_PROPERTY)
        # L'émetteur garde la moitié inférieure (binaire) ou une copie de moins (source)
        msg.update_property(MSG_COUNT_PROPERTY, copies // 2 if self.binary else copies - 1)

    def get_copies_left(self, msg_id: str):
        msg = self.get_message(msg_id)
        return msg.get_property(MSG_COUNT_PROPERTY) if msg is not None else None

    def get_messages_with_copies_left(self) -> list:
        return [m for m in self.get_message_collection()
                if m.get_property(MSG_COUNT_PROPERTY, 0) > 1]

    def update(self):
        super().update()
        if not self.can_start_transfer() or self.is_transferring():
            return

        if self.exchange_deliverable_messages() is not None:
            return

        copies_left = self.sort_by_queue_mode(self.get_messages_with_copies_left())
        if copies_left:
            self.try_messages_to_connections(copies_left, self.get_connections())

    def __str__(self) -> str:
        mode = "Binary" if self.binary else "Source"
        return f"{mode} Spray and Wait (L={self.initial_nrof_copies})"
