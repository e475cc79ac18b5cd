# simulation/engine.py
"""
Boucle de simulation à événements discrets.

À chaque pas:
1. l'horloge avance d'un pas
2. les événements de contact échus sont appliqués (mises à jour des probabilités)
3. les messages dont l'instant de création est échu sont créés
4. chaque routeur exécute son pas de décision, l'un après l'autre

Les routeurs ne s'exécutent jamais en parallèle: les lectures croisées entre
nœuds (probabilités, état des transferts) ne peuvent donc pas se chevaucher.
"""
import logging
import random

import numpy as np
import pandas as pd
from tqdm import tqdm

from models.message import Message
from models.node import Node
from models.world import World
from simulation.clock import SimClock
from simulation.metrics import MessageStatsReport

logger = logging.getLogger(__name__)


def build_world(router_prototype, num_nodes: int, clock, transmit_speed: float,
                listeners=None, seed: int = None) -> World:
    """
    Crée un réseau de nœuds dont chaque routeur est une réplique du prototype.

    Args:
        router_prototype (DTNRouter): routeur modèle (jamais attaché à un nœud)
        num_nodes (int): nombre de nœuds
        clock (SimClock): horloge partagée
        transmit_speed (float): débit des connexions (octets/s)
        listeners (list, optional): observateurs des événements de messages
        seed (int, optional): graine des générateurs aléatoires des routeurs

    Returns:
        World: le réseau
    """
    world = World(clock, transmit_speed)
    for i in range(num_nodes):
        router = router_prototype.replicate()
        node = Node(i, router)
        rng = random.Random(None if seed is None else seed + i)
        router.init(node, clock, listeners, rng)
        world.add_node(node)
    return world


class MessageGenerator:
    """
    Crée un message à intervalle régulier entre deux nœuds tirés au hasard.
    """

    def __init__(self, interval: float, size: int, num_nodes: int, seed: int = None,
                 start: float = 0.0, prefix: str = 'M'):
        if num_nodes < 2:
            raise ValueError("Il faut au moins deux nœuds pour générer des messages")
        self.interval = interval
        self.size = size
        self.num_nodes = num_nodes
        self.rng = np.random.default_rng(seed)
        self.next_time = start
        self.prefix = prefix
        self.count = 0

    def due_messages(self, now: float) -> list:
        messages = []
        while self.interval > 0 and self.next_time <= now:
            source, dest = self.rng.choice(self.num_nodes, size=2, replace=False)
            self.count += 1
            messages.append(Message(f"{self.prefix}{self.count}", int(source), int(dest),
                                    self.size, created_at=self.next_time))
            self.next_time += self.interval
        return messages


class Simulation:
    """
    Simulation d'un réseau DTN pour un routeur donné.
    """

    def __init__(self, router_prototype, num_nodes: int, events: list, steps: int,
                 step_duration: float, transmit_speed: float, generator: MessageGenerator = None,
                 seed: int = None, track_node: int = None):
        """
        Args:
            router_prototype (DTNRouter): routeur modèle
            num_nodes (int): nombre de nœuds
            events (list(ContactEvent)): événements de contact
            steps (int): nombre de pas de simulation
            step_duration (float): durée d'un pas (s)
            transmit_speed (float): débit des connexions (octets/s)
            generator (MessageGenerator, optional): générateur de messages
            seed (int, optional): graine aléatoire
            track_node (int, optional): nœud dont on enregistre les probabilités à chaque pas
        """
        self.clock = SimClock()
        self.report = MessageStatsReport(self.clock)
        self.world = build_world(router_prototype, num_nodes, self.clock, transmit_speed,
                                 [self.report], seed)
        self.events = sorted(events, key=lambda e: (e.time, e.up))
        self.steps = steps
        self.step_duration = step_duration
        self.generator = generator
        self.track_node = track_node
        self.history = []
        self._next_event = 0

    def _apply_due_events(self, now: float):
        while self._next_event < len(self.events) and self.events[self._next_event].time <= now:
            self.world.apply_event(self.events[self._next_event])
            self._next_event += 1

    def step(self, t: int):
        now = t * self.step_duration
        self.clock.set_time(now)
        self._apply_due_events(now)

        if self.generator is not None:
            for msg in self.generator.due_messages(now):
                self.world.nodes[msg.source].router.create_new_message(msg)

        self.world.update()

        if self.track_node is not None:
            router = self.world.nodes[self.track_node].router
            self.history.append({'time': now, **router.get_all_predictabilities()})

    def run(self, progress: bool = True) -> MessageStatsReport:
        """
        Exécute tous les pas de la simulation.

        Returns:
            MessageStatsReport: le rapport des événements de messages
        """
        for t in tqdm(range(self.steps), desc="Simulation", disable=not progress):
            self.step(t)
        logger.info("Simulation terminée: %d contact(s) établi(s), %d coupé(s)",
                    self.world.contacts_up, self.world.contacts_down)
        return self.report

    def history_dataframe(self) -> pd.DataFrame:
        """
        Returns:
            pd.DataFrame: probabilités du nœud suivi, une ligne par pas (index: temps)
        """
        if not self.history:
            return pd.DataFrame()
        return pd.DataFrame(self.history).set_index('time').fillna(0.0)
