#!/usr/bin/env python3
# test_forwarding.py
"""
Tests de la génération et du tri des candidats au relais opportuniste.
"""
import os
import sys

sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from models.message import Message
from protocols.forwarding import ForwardCandidate, relay_candidates


class FakePeer:
    """Pair simulé exposant l'interface de requête entre pairs."""

    def __init__(self, preds, transferring=False, messages=()):
        self.preds = preds
        self.transferring = transferring
        self.messages = set(messages)

    def get_predictability(self, destination):
        return self.preds.get(destination, 0.0)

    def get_all_predictabilities(self):
        return dict(self.preds)

    def is_transferring(self):
        return self.transferring

    def has_message(self, msg_id):
        return msg_id in self.messages


def own(preds):
    return lambda destination: preds.get(destination, 0.0)


MSG_D = Message("M1", source=0, destination='D', size=100)


def test_candidates_sorted_by_peer_predictability():
    contacts = [('con2', FakePeer({'D': 0.6})), ('con1', FakePeer({'D': 0.8}))]
    candidates = relay_candidates([MSG_D], contacts, own({'D': 0.5}))

    assert [c.connection for c in candidates] == ['con1', 'con2']
    assert [c.score for c in candidates] == [0.8, 0.6]
    assert all(isinstance(c, ForwardCandidate) and c.message is MSG_D for c in candidates)


def test_equal_predictability_is_a_candidate():
    candidates = relay_candidates([MSG_D], [('con1', FakePeer({'D': 0.5}))], own({'D': 0.5}))
    assert len(candidates) == 1


def test_lower_predictability_is_excluded():
    candidates = relay_candidates([MSG_D], [('con1', FakePeer({'D': 0.4}))], own({'D': 0.5}))
    assert candidates == []


def test_transferring_peer_yields_no_candidate():
    contacts = [('busy', FakePeer({'D': 0.99}, transferring=True)),
                ('free', FakePeer({'D': 0.6}))]
    candidates = relay_candidates([MSG_D], contacts, own({'D': 0.5}))
    assert [c.connection for c in candidates] == ['free']


def test_peer_already_holding_message_is_skipped():
    contacts = [('con1', FakePeer({'D': 0.9}, messages=['M1']))]
    assert relay_candidates([MSG_D], contacts, own({'D': 0.1})) == []


def test_candidates_cover_every_message_and_contact():
    msg_e = Message("M2", source=0, destination='E', size=100)
    contacts = [('con1', FakePeer({'D': 0.7, 'E': 0.2})), ('con2', FakePeer({'E': 0.9}))]
    candidates = relay_candidates([MSG_D, msg_e], contacts, own({'D': 0.5, 'E': 0.1}))

    pairs = [(c.message.id, c.connection) for c in candidates]
    assert pairs == [('M2', 'con2'), ('M1', 'con1'), ('M2', 'con1')]


def test_equal_scores_keep_generation_order():
    # L'ordre entre candidats de score égal est défini par l'implémentation;
    # le tri stable conserve l'ordre de génération (connexions, puis messages).
    msg_e = Message("M2", source=0, destination='E', size=100)
    contacts = [('con1', FakePeer({'D': 0.7, 'E': 0.7})), ('con2', FakePeer({'D': 0.7}))]
    candidates = relay_candidates([MSG_D, msg_e], contacts, own({}))

    pairs = [(c.message.id, c.connection) for c in candidates]
    # ('M2', 'con2'): 0.0 >= 0.0, candidat de score nul placé en dernier
    assert pairs == [('M1', 'con1'), ('M2', 'con1'), ('M1', 'con2'), ('M2', 'con2')]


def test_no_contacts_no_candidates():
    assert relay_candidates([MSG_D], [], own({'D': 0.5})) == []
