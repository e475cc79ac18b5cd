# protocols/copies.py
"""
Suivi du nombre de copies de diffusion restantes par message.

Le compteur est propre à chaque nœud (clé: identifiant du message) et n'est
jamais partagé par référence avec l'instance d'un autre nœud. Le message porte
seulement un marqueur MSG_COUNT_PROPERTY indiquant qu'il a été créé par ce
protocole.
"""
import logging

from config import ConfigurationError
from protocols.base import CopyCountMissingError

logger = logging.getLogger(__name__)

MSG_COUNT_PROPERTY = 'DRINC.copies'


class CopyManager:
    """
    Gère le nombre de copies restantes des messages détenus par un nœud.
    """

    def __init__(self, initial_nrof_copies: int):
        if initial_nrof_copies is None or int(initial_nrof_copies) < 1:
            raise ConfigurationError(
                f"nrofCopies doit être >= 1 (reçu {initial_nrof_copies})")
        self.initial_nrof_copies = int(initial_nrof_copies)
        self.copies_left = {}

    def on_message_created(self, msg):
        """Un message créé localement dispose de toutes ses copies."""
        msg.add_property(MSG_COUNT_PROPERTY, self.initial_nrof_copies)
        self.copies_left[msg.id] = self.initial_nrof_copies

    def on_message_received(self, msg):
        """
        Le nœud récepteur n'obtient qu'une seule copie, quel que soit le
        nombre restant chez l'émetteur.

        Raises:
            CopyCountMissingError: si le message n'a pas été créé par ce protocole
        """
        self.check_marker(msg)
        self.copies_left[msg.id] = 1

    def check_marker(self, msg):
        if msg.get_property(MSG_COUNT_PROPERTY) is None:
            raise CopyCountMissingError(f"Message {msg.id} sans compteur de copies: {msg}")

    def get_copies_left(self, msg_id: str):
        return self.copies_left.get(msg_id)

    def eligible_for_spraying(self, messages) -> list:
        """
        Returns:
            list: les messages disposant encore de copies à distribuer (> 1)
        """
        eligible = []
        for msg in messages:
            copies = self.copies_left.get(msg.id)
            if copies is None:
                raise CopyCountMissingError(f"Message {msg.id} sans compteur de copies: {msg}")
            if copies > 1:
                eligible.append(msg)
        return eligible

    def on_transfer_completed(self, msg_id: str) -> bool:
        """
        Retire une copie après un transfert réussi vers un autre nœud.
        Sans effet si le message a quitté le buffer entre-temps.

        Returns:
            bool: True si le compteur a été décrémenté
        """
        copies = self.copies_left.get(msg_id)
        if copies is None or copies <= 1:
            return False
        self.copies_left[msg_id] = copies - 1
        logger.debug("Message %s: %d copie(s) restante(s)", msg_id, copies - 1)
        return True

    def forget(self, msg_id: str):
        self.copies_left.pop(msg_id, None)
