#!/usr/bin/env python3
# test_simulation.py
"""
Tests de l'environnement de simulation: contacts, traces, réseau, métriques,
graphiques et programme principal.
"""
import copy
import json
import os
import sys

import matplotlib
matplotlib.use('Agg')

import pandas as pd
import pytest

sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from config import CONFIG
from data.loader import load_contact_trace, trace_num_nodes
from main import main
from models.message import Message
from protocols import DrincRouter, SprayAndWaitRouter
from simulation.clock import SimClock
from simulation.contacts import (ContactEvent, adjacency_to_events, create_dynamic_network,
                                 create_static_network, group_events_by_time)
from simulation.engine import MessageGenerator, Simulation, build_world
from simulation.metrics import (DeliveryMetrics, MessageStatsReport,
                                generate_comparative_table, metrics_to_dataframe)
from simulation.visualize import plot_latency_cdf, plot_predictability_history


def small_settings():
    settings = copy.deepcopy(CONFIG)
    settings['router']['queue_mode'] = 'fifo'
    return settings


#*************** Contacts ****************
def test_static_network_is_symmetric():
    adjacency = create_static_network(10, 0.5, seed=3)
    for i, neighbors in adjacency.items():
        assert i not in neighbors
        for j in neighbors:
            assert i in adjacency[j]


def test_dynamic_network_is_reproducible():
    first = create_dynamic_network(8, 0.3, 5, seed=7)
    second = create_dynamic_network(8, 0.3, 5, seed=7)
    assert len(first) == 5
    assert first == second


def test_adjacency_to_events_orders_downs_before_ups():
    snapshots = [
        {0: {1}, 1: {0}, 2: set()},
        {0: set(), 1: {2}, 2: {1}},
        {0: set(), 1: {2}, 2: {1}},
    ]
    events = adjacency_to_events(snapshots, step_duration=60)

    assert events == [
        ContactEvent(0, 0, 1, True),
        ContactEvent(60, 0, 1, False),
        ContactEvent(60, 1, 2, True),
    ]
    grouped = group_events_by_time(events)
    assert [t for t, _ in grouped] == [0, 60]
    assert [e.up for e in grouped[1][1]] == [False, True]


#*************** Traces ****************
def test_load_csv_trace(tmp_path):
    path = tmp_path / "trace.csv"
    path.write_text("time,from,to,state\n10,0,1,up\n5,1,2,up\n20,0,1,down\n")

    events = load_contact_trace(str(path))
    assert [e.time for e in events] == [5.0, 10.0, 20.0]
    assert events[0] == ContactEvent(5.0, 1, 2, True)
    assert events[-1].up is False
    assert trace_num_nodes(events) == 3


def test_load_text_trace_keeps_only_connection_events(tmp_path):
    path = tmp_path / "trace.txt"
    path.write_text("# trace de test\n"
                    "10 CONN 0 3 up\n"
                    "12 MSG 0 3 created\n"
                    "30 CONN 0 3 down\n")

    events = load_contact_trace(str(path))
    assert events == [ContactEvent(10.0, 0, 3, True), ContactEvent(30.0, 0, 3, False)]
    assert trace_num_nodes(events) == 4


def test_unknown_trace_state_is_rejected(tmp_path):
    path = tmp_path / "trace.csv"
    path.write_text("time,from,to,state\n10,0,1,sideways\n")
    with pytest.raises(ValueError):
        load_contact_trace(str(path))


def test_empty_trace_needs_no_nodes():
    assert trace_num_nodes([]) == 0


#*************** Réseau ****************
def test_world_follows_adjacency_snapshots():
    clock = SimClock()
    world = build_world(DrincRouter(small_settings()), 3, clock, 1e6, seed=0)

    assert world.apply_adjacency({0: {1}, 1: {0}, 2: set()}) == (1, 0)
    clock.set_time(60)
    assert world.apply_adjacency({0: {2}, 2: {0}}) == (1, 1)

    assert world.contacts_up == 2 and world.contacts_down == 1
    assert sorted(world.to_nxgraph().edges()) == [(0, 2)]
    assert world.nodes[0].get_neighbors_ids() == [2]
    assert world.nodes[1].degree() == 0


def test_each_node_gets_its_own_router():
    world = build_world(DrincRouter(small_settings()), 4, SimClock(), 1e6, seed=0)
    routers = [node.router for node in world.nodes.values()]
    assert len({id(r) for r in routers}) == 4
    assert all(r.host is world.nodes[i] for i, r in enumerate(routers))


def test_message_generator():
    generator = MessageGenerator(100, 1000, 5, seed=1)
    messages = generator.due_messages(250)

    assert [m.id for m in messages] == ['M1', 'M2', 'M3']
    assert [m.created_at for m in messages] == [0, 100, 200]
    assert all(m.source != m.destination for m in messages)
    assert generator.due_messages(250) == []

    with pytest.raises(ValueError):
        MessageGenerator(100, 1000, 1)


#*************** Simulation ****************
@pytest.mark.parametrize("router_cls", [DrincRouter, SprayAndWaitRouter])
def test_small_run_stays_consistent(router_cls):
    settings = small_settings()
    snapshots = create_dynamic_network(8, 0.3, 60, seed=5)
    events = adjacency_to_events(snapshots, 60)
    sim = Simulation(router_cls(settings), 8, events, 60, 60, 250_000,
                     MessageGenerator(300, 100_000, 8, seed=5), seed=5,
                     track_node=0 if router_cls is DrincRouter else None)
    metrics = sim.run(progress=False).summary()

    assert metrics.created == 12
    assert 0 <= metrics.delivered <= metrics.created
    assert 0.0 <= metrics.delivery_prob <= 1.0
    assert metrics.relayed <= metrics.started

    for node in sim.world.nodes.values():
        router = node.router
        for msg in router.get_message_collection():
            assert msg.destination != node.id
            assert router.get_copies_left(msg.id) >= 1

    if router_cls is DrincRouter:
        history = sim.history_dataframe()
        assert len(history) == 60
        assert ((history >= 0.0) & (history <= 1.0)).all().all()
        assert 0 not in history.columns


def test_report_tracks_deliveries_and_drops():
    clock = SimClock()
    report = MessageStatsReport(clock)
    msg = Message('M1', 0, 2, 100, created_at=0.0)
    lost = Message('M2', 0, 3, 100, created_at=0.0)
    report.new_message(msg)
    report.new_message(lost)

    relay = msg.replicate()
    relay.path += [1, 2]
    clock.set_time(120)
    report.message_transfer_started(relay, None, None)
    report.message_transferred(relay, None, None, True)
    report.message_deleted(lost, None, True)

    metrics = report.summary()
    assert metrics.created == 2 and metrics.delivered == 1
    assert metrics.delivery_prob == 0.5
    assert metrics.latency_avg == 120.0
    assert metrics.hopcount_avg == 2.0
    assert metrics.dropped == 1
    assert metrics.overhead_ratio == 0.0

    df = report.to_dataframe()
    assert list(df.columns) == ['message', 'created', 'delivered', 'latency', 'hops']
    assert df['delivered'].tolist() == [True, False]


def test_comparative_table_and_csv(tmp_path):
    results = {
        'drinc': DeliveryMetrics(10, 30, 25, 1, 0, 5, 0.5, 4.0, 900.0, 800.0, 2.2),
        'spray': DeliveryMetrics(10, 20, 18, 0, 2, 0, 0.0, float('inf'),
                                 float('inf'), float('inf'), 0.0),
    }
    table = generate_comparative_table(results)
    assert 'drinc' in table and 'spray' in table
    assert 'N/A' in table

    df = metrics_to_dataframe(results)
    assert df['router'].tolist() == ['drinc', 'spray']

    report = MessageStatsReport(SimClock())
    report.new_message(Message('M1', 0, 1, 10))
    path = tmp_path / 'out' / 'messages.csv'
    report.save_csv(str(path))
    assert pd.read_csv(path)['message'].tolist() == ['M1']


def test_plots_are_written(tmp_path):
    history = pd.DataFrame({1: [0.9, 0.8], 2: [0.0, 0.81]}, index=[0.0, 60.0])
    preds_png = tmp_path / 'preds.png'
    plot_predictability_history(history, 0, str(preds_png))
    assert preds_png.exists()

    empty_png = tmp_path / 'empty.png'
    plot_predictability_history(pd.DataFrame(), 0, str(empty_png))
    assert not empty_png.exists()

    frames = {'drinc': pd.DataFrame({'latency': [60.0, float('nan'), 600.0]})}
    cdf_png = tmp_path / 'cdf.png'
    plot_latency_cdf(frames, str(cdf_png))
    assert cdf_png.exists()


#*************** Programme principal ****************
def test_main_end_to_end(tmp_path):
    outdir = tmp_path / 'logs'
    code = main(['--nodes', '6', '--steps', '20', '--copies', '3', '--seed', '1',
                 '--outdir', str(outdir), '--no-progress', '--plot'])

    assert code == 0
    comparison = pd.read_csv(outdir / 'router_comparison.csv')
    assert comparison['router'].tolist() == ['drinc', 'spray']
    assert (outdir / 'messages_drinc.csv').exists()
    assert (outdir / 'messages_spray.csv').exists()
    assert (outdir / 'latency_cdf.png').exists()


def test_main_replays_a_trace(tmp_path):
    trace = tmp_path / 'trace.csv'
    trace.write_text("time,from,to,state\n0,0,1,up\n120,0,1,down\n240,1,2,up\n")
    outdir = tmp_path / 'logs'

    code = main(['--router', 'drinc', '--trace', str(trace), '--nodes', '3',
                 '--steps', '10', '--outdir', str(outdir), '--no-progress'])
    assert code == 0
    assert (outdir / 'messages_drinc.csv').exists()
    assert not (outdir / 'messages_spray.csv').exists()


def test_main_reports_missing_setting(tmp_path):
    config = tmp_path / 'config.json'
    config.write_text(json.dumps({'DRINC': {'nrofCopies': None}}))

    code = main(['--router', 'drinc', '--config', str(config), '--nodes', '4',
                 '--steps', '5', '--outdir', str(tmp_path / 'logs'), '--no-progress'])
    assert code == 2


def test_main_reports_missing_config_file(tmp_path):
    code = main(['--config', str(tmp_path / 'absent.json'), '--no-progress'])
    assert code == 2


if __name__ == "__main__":
    # Démonstration rapide: comparaison des deux routeurs sur un petit scénario
    settings = small_settings()
    events = adjacency_to_events(create_dynamic_network(12, 0.15, 240, seed=42), 60)
    results = {}
    for name, cls in (('drinc', DrincRouter), ('spray', SprayAndWaitRouter)):
        sim = Simulation(cls(settings), 12, events, 240, 60, 250_000,
                         MessageGenerator(600, 500_000, 12, seed=42), seed=42)
        results[name] = sim.run().summary()
    print(generate_comparative_table(results))
