#!/usr/bin/env python3
# test_copy_manager.py
"""
Tests du suivi des copies de diffusion par message.
"""
import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from config import ConfigurationError
from models.message import Message
from protocols.base import CopyCountMissingError
from protocols.copies import MSG_COUNT_PROPERTY, CopyManager


def make_message(msg_id="M1", dest=9):
    return Message(msg_id, source=0, destination=dest, size=1000)


def test_created_message_gets_initial_copies():
    manager = CopyManager(4)
    msg = make_message()
    manager.on_message_created(msg)

    assert manager.get_copies_left("M1") == 4
    assert msg.get_property(MSG_COUNT_PROPERTY) == 4


def test_received_message_gets_a_single_copy():
    sender = CopyManager(8)
    receiver = CopyManager(8)
    msg = make_message()
    sender.on_message_created(msg)

    received = msg.replicate()
    receiver.on_message_received(received)
    assert receiver.get_copies_left("M1") == 1
    assert sender.get_copies_left("M1") == 8  # compteurs indépendants


def test_received_message_without_marker_is_an_invariant_violation():
    manager = CopyManager(4)
    with pytest.raises(CopyCountMissingError):
        manager.on_message_received(make_message())
    assert issubclass(CopyCountMissingError, AssertionError)


def test_eligible_for_spraying():
    manager = CopyManager(3)
    spread, single = make_message("M1"), make_message("M2")
    manager.on_message_created(spread)
    manager.on_message_created(single)
    manager.on_message_received(single)

    assert manager.eligible_for_spraying([spread, single]) == [spread]


def test_eligible_for_spraying_rejects_untracked_message():
    manager = CopyManager(3)
    with pytest.raises(CopyCountMissingError):
        manager.eligible_for_spraying([make_message()])


def test_transfer_completed_decrements_down_to_one():
    manager = CopyManager(4)
    msg = make_message()
    manager.on_message_created(msg)

    assert [manager.on_transfer_completed("M1") for _ in range(3)] == [True, True, True]
    assert manager.get_copies_left("M1") == 1
    assert manager.eligible_for_spraying([msg]) == []

    # Les relais suivants ne consomment plus de copie
    assert manager.on_transfer_completed("M1") is False
    assert manager.get_copies_left("M1") == 1


def test_transfer_completed_after_eviction_is_noop():
    manager = CopyManager(4)
    manager.on_message_created(make_message())
    manager.forget("M1")

    assert manager.on_transfer_completed("M1") is False
    assert manager.get_copies_left("M1") is None


@pytest.mark.parametrize("copies", [0, -1, None])
def test_invalid_initial_copies(copies):
    with pytest.raises(ConfigurationError):
        CopyManager(copies)
