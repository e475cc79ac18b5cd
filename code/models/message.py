# models/message.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Message:
    """
    Message transporté de nœud en nœud (store-and-forward).

    Chaque nœud détient sa propre instance du message: un transfert produit une
    copie indépendante (voir replicate), jamais une référence partagée.

    Attributes:
        id: Identifiant unique du message
        source: ID du nœud émetteur
        destination: ID du nœud destinataire final
        size: Taille en octets
        created_at: Instant de création (s)
        ttl: Durée de vie en secondes, None pour aucune expiration
        path: Liste des nœuds traversés, source comprise
        properties: Propriétés attachées par les protocoles de routage
        received_at: Instant de réception par le nœud qui détient cette instance
    """
    id: str
    source: int
    destination: int
    size: int
    created_at: float = 0.0
    ttl: Optional[float] = None
    path: List[int] = field(default_factory=list)
    properties: Dict[str, Any] = field(default_factory=dict)
    received_at: float = 0.0

    def __post_init__(self):
        if not self.path:
            self.path = [self.source]

    @property
    def hop_count(self) -> int:
        """Nombre de sauts effectués par cette instance du message."""
        return len(self.path) - 1

    def ttl_left(self, now: float) -> Optional[float]:
        """
        Temps de vie restant à l'instant now.

        Returns:
            float: secondes restantes, ou None si le message n'expire pas
        """
        if self.ttl is None:
            return None
        return self.ttl - (now - self.created_at)

    def is_expired(self, now: float) -> bool:
        left = self.ttl_left(now)
        return left is not None and left <= 0

    def add_property(self, key: str, value: Any):
        if key in self.properties:
            raise KeyError(f"La propriété {key} existe déjà pour le message {self.id}")
        self.properties[key] = value

    def get_property(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    def update_property(self, key: str, value: Any):
        if key not in self.properties:
            raise KeyError(f"Propriété {key} inconnue pour le message {self.id}")
        self.properties[key] = value

    def replicate(self) -> 'Message':
        """Crée une copie indépendante du message (chemin et propriétés compris)."""
        return Message(
            id=self.id,
            source=self.source,
            destination=self.destination,
            size=self.size,
            created_at=self.created_at,
            ttl=self.ttl,
            path=list(self.path),
            properties=dict(self.properties),
            received_at=self.received_at,
        )

    def __str__(self):
        return f"M{self.id} ({self.source}->{self.destination}, {self.size} o)"
