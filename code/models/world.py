# models/world.py
import logging

import networkx as nx

from models.connection import Connection
from models.node import Node

logger = logging.getLogger(__name__)


class World:
    """
    Ensemble des nœuds du réseau DTN et des connexions actives entre eux.
    """

    def __init__(self, clock, transmit_speed: float, nodes=None):
        """
        Constructeur d'un objet World

        Args:
            clock (SimClock): horloge de simulation partagée
            transmit_speed (float): débit des connexions (octets/s)
            nodes (list, optional): liste des objets Node. Par défaut None.
        """
        self.clock = clock
        self.transmit_speed = transmit_speed
        self.nodes = {}
        self.connections = {}  # (id_min, id_max) -> Connection
        self.contacts_up = 0
        self.contacts_down = 0
        for node in nodes or []:
            self.add_node(node)

    def __str__(self):
        nb_nodes = len(self.nodes)
        return (f"Réseau avec {nb_nodes} nœud{'s' if nb_nodes > 1 else ''}, "
                f"{len(self.connections)} connexion(s) active(s)")

    @staticmethod
    def _key(a: int, b: int):
        return (a, b) if a < b else (b, a)

    #*************** Opérations courantes ***************
    def add_node(self, node: Node):
        """
        Ajoute un nœud au réseau s'il n'y est pas déjà.

        Args:
            node: le nœud à ajouter.
        """
        if node.id not in self.nodes:
            self.nodes[node.id] = node

    def get_connection(self, a: int, b: int):
        return self.connections.get(self._key(a, b))

    def connect(self, a: int, b: int):
        """
        Établit une connexion entre deux nœuds et prévient leurs routeurs.

        Returns:
            Connection: la connexion (existante ou nouvelle)
        """
        key = self._key(a, b)
        if key in self.connections or a == b:
            return self.connections.get(key)

        node_a, node_b = self.nodes[a], self.nodes[b]
        con = Connection(node_a, node_b, self.transmit_speed, self.clock.get_time())
        self.connections[key] = con
        node_a.add_connection(con)
        node_b.add_connection(con)
        self.contacts_up += 1

        node_a.router.changed_connection(con)
        node_b.router.changed_connection(con)
        return con

    def disconnect(self, a: int, b: int):
        """
        Coupe la connexion entre deux nœuds; un transfert en cours est interrompu.
        """
        con = self.connections.pop(self._key(a, b), None)
        if con is None:
            return None

        con.set_up_state(False)
        con.abort_transfer()
        con.from_node.remove_connection(con)
        con.to_node.remove_connection(con)
        self.contacts_down += 1

        con.from_node.router.changed_connection(con)
        con.to_node.router.changed_connection(con)
        return con

    def apply_event(self, event):
        """
        Applique un événement de contact (ContactEvent).
        """
        if event.up:
            self.connect(event.a, event.b)
        else:
            self.disconnect(event.a, event.b)

    def apply_adjacency(self, adjacency: dict):
        """
        Aligne les connexions actives sur un dictionnaire d'adjacence.

        Args:
            adjacency (dict[int, set[int]]): {id_nœud: {id_voisin1, id_voisin2, ...}, ...}

        Returns:
            tuple: (nombre de connexions établies, nombre de connexions coupées)
        """
        wanted = {self._key(i, j) for i, neigh in adjacency.items() for j in neigh if i != j}
        current = set(self.connections)

        down = sorted(current - wanted)
        up = sorted(wanted - current)
        for a, b in down:
            self.disconnect(a, b)
        for a, b in up:
            self.connect(a, b)
        return len(up), len(down)

    def update(self):
        """Pas de simulation de chaque routeur, par ordre d'ID."""
        for node_id in sorted(self.nodes):
            self.nodes[node_id].router.update()

    def to_nxgraph(self):
        """
        Convertit l'état courant des connexions en un graphe NetworkX.

        Returns:
            nx.Graph: le graphe converti.
        """
        G = nx.Graph()
        G.add_nodes_from(self.nodes)
        G.add_edges_from(self.connections)
        return G
