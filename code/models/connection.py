# models/connection.py
"""
Lien bidirectionnel entre deux nœuds et négociation des transferts.

Codes de retour de la négociation d'un transfert (receive_message):
- RCV_OK: le récepteur accepte le message
- TRY_LATER_BUSY (> 0): refus temporaire, à retenter plus tard
- DENIED_* (< 0): refus pour ce message, on essaie le candidat suivant
"""
import logging

logger = logging.getLogger(__name__)

RCV_OK = 0
TRY_LATER_BUSY = 1
DENIED_OLD = -1
DENIED_NO_SPACE = -2
DENIED_TTL = -3


class Connection:
    """
    Connexion entre deux nœuds, capable de transporter un message à la fois.
    """

    def __init__(self, from_node, to_node, speed: float, created_at: float = 0.0):
        """
        Args:
            from_node (Node): nœud à l'origine de la connexion
            to_node (Node): nœud à l'autre extrémité
            speed (float): débit du lien (octets/s)
            created_at (float, optional): instant d'établissement. Par défaut 0.0.
        """
        self.from_node = from_node
        self.to_node = to_node
        self.speed = float(speed)
        self.created_at = created_at
        self.up = True

        self.message = None          # Message en cours de transfert
        self.msg_from_node = None    # Émetteur du message en cours
        self.transfer_start = 0.0
        self.bytes_transferred = 0

    def __str__(self):
        state = "up" if self.up else "down"
        busy = f", transfert de {self.message.id}" if self.message is not None else ""
        return f"{self.from_node.id}<->{self.to_node.id} ({state}{busy})"

    def is_up(self) -> bool:
        return self.up

    def set_up_state(self, state: bool):
        self.up = state

    def get_other_node(self, node):
        """
        Retourne le nœud à l'autre extrémité de la connexion.

        Args:
            node (Node): l'une des deux extrémités
        """
        if node is self.from_node:
            return self.to_node
        return self.from_node

    def is_transferring(self) -> bool:
        return self.message is not None

    def is_ready_for_transfer(self) -> bool:
        return self.up and self.message is None

    def get_message(self):
        return self.message

    def transfer_duration(self) -> float:
        if self.message is None:
            return 0.0
        return self.message.size / self.speed

    #*************** Cycle de vie d'un transfert ****************
    def start_transfer(self, from_node, message, now: float) -> int:
        """
        Négocie puis démarre le transfert d'un message vers l'autre nœud.

        Args:
            from_node (Node): nœud émetteur
            message (Message): instance du message détenue par l'émetteur
            now (float): instant courant

        Returns:
            int: code de retour du récepteur (RCV_OK si le transfert démarre)
        """
        if not self.is_ready_for_transfer():
            return TRY_LATER_BUSY

        receiver = self.get_other_node(from_node)
        retval = receiver.router.receive_message(message, from_node)
        if retval == RCV_OK:
            self.message = message
            self.msg_from_node = from_node
            self.transfer_start = now
            logger.debug("t=%.0f: début du transfert de %s (%d -> %d)",
                         now, message.id, from_node.id, receiver.id)
        return retval

    def is_message_transferred(self, now: float) -> bool:
        if self.message is None:
            return False
        return now - self.transfer_start >= self.transfer_duration()

    def finalize_transfer(self):
        """
        Termine le transfert côté récepteur. Le message reste attaché à la
        connexion jusqu'à clear_transfer pour que l'émetteur puisse le consulter.

        Returns:
            Message: instance reçue par l'autre nœud
        """
        receiver = self.get_other_node(self.msg_from_node)
        self.bytes_transferred += self.message.size
        return receiver.router.message_transferred(self.message.id, self.msg_from_node)

    def clear_transfer(self):
        self.message = None
        self.msg_from_node = None
        self.transfer_start = 0.0

    def abort_transfer(self):
        """Interrompt le transfert en cours (par exemple à la coupure du lien)."""
        if self.message is None:
            return
        receiver = self.get_other_node(self.msg_from_node)
        receiver.router.message_aborted(self.message.id, self.msg_from_node)
        logger.debug("Transfert de %s interrompu (%s)", self.message.id, self)
        self.clear_transfer()
