# main.py
import argparse
import logging
import os
import sys

from config import CONFIG, ConfigurationError, load_config
from data.loader import load_contact_trace, trace_num_nodes
from protocols import ROUTERS
from simulation.contacts import adjacency_to_events, create_dynamic_network
from simulation.engine import MessageGenerator, Simulation
from simulation.metrics import generate_comparative_table, metrics_to_dataframe
from simulation.visualize import plot_latency_cdf, plot_predictability_history

logger = logging.getLogger(__name__)


def parse_arguments(argv=None):
    """Parse les arguments de ligne de commande."""
    parser = argparse.ArgumentParser(
        description="Simulation du routage DRINC dans un réseau tolérant aux délais")
    parser.add_argument('--router', choices=['drinc', 'spray', 'both'], default='both',
                        help='Routeur(s) à simuler')
    parser.add_argument('--config', type=str, default=None,
                        help='Fichier JSON de configuration (superposé aux valeurs par défaut)')
    parser.add_argument('--trace', type=str, default=None,
                        help='Trace de contacts à rejouer (CSV ou texte CONN)')
    parser.add_argument('--nodes', type=int, default=None, help='Nombre de nœuds')
    parser.add_argument('--steps', type=int, default=None, help='Nombre de pas de simulation')
    parser.add_argument('--copies', type=int, default=None,
                        help='Nombre initial de copies par message')
    parser.add_argument('--seed', type=int, default=None, help='Graine aléatoire')
    parser.add_argument('--outdir', type=str, default=None, help='Dossier de sortie')
    parser.add_argument('--plot', action='store_true', help='Générer les graphiques')
    parser.add_argument('--no-progress', action='store_true', help='Masquer la barre de progression')
    parser.add_argument('--verbose', '-v', action='store_true', help='Journalisation détaillée')
    return parser.parse_args(argv)


def apply_overrides(settings: dict, args) -> dict:
    """Reporte les options de la ligne de commande dans la configuration."""
    scenario = settings['scenario']
    if args.nodes is not None:
        scenario['num_nodes'] = args.nodes
    if args.steps is not None:
        scenario['steps'] = args.steps
    if args.seed is not None:
        scenario['seed'] = args.seed
    if args.copies is not None:
        settings.setdefault('DRINC', {})['nrofCopies'] = args.copies
        settings.setdefault('SprayAndWait', {})['nrofCopies'] = args.copies
    if args.outdir is not None:
        settings['outdir'] = args.outdir
    return settings


def run_scenario(settings: dict, router_names: list, trace: str = None,
                 progress: bool = True, track_node: int = None) -> dict:
    """
    Exécute le même scénario de contacts pour chacun des routeurs demandés.

    Returns:
        dict: nom du routeur -> Simulation terminée
    """
    scenario = settings['scenario']
    seed = scenario['seed']

    if trace:
        events = load_contact_trace(trace)
        num_nodes = max(scenario['num_nodes'], trace_num_nodes(events))
    else:
        num_nodes = scenario['num_nodes']
        print("### Génération des topologies de réseau ###")
        snapshots = create_dynamic_network(num_nodes, scenario['connectivity'],
                                           scenario['steps'], seed)
        events = adjacency_to_events(snapshots, scenario['step_duration'])

    simulations = {}
    for name in router_names:
        print(f"### Simulation: {name} ###")
        prototype = ROUTERS[name](settings)
        generator = MessageGenerator(scenario['message_interval'], scenario['message_size'],
                                     num_nodes, seed)
        sim = Simulation(prototype, num_nodes, events, scenario['steps'],
                         scenario['step_duration'], scenario['transmit_speed'],
                         generator, seed, track_node if name == 'drinc' else None)
        sim.run(progress=progress)
        simulations[name] = sim
    return simulations


def main(argv=None):
    """Point d'entrée principal du programme."""
    args = parse_arguments(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )

    try:
        settings = apply_overrides(load_config(args.config), args)
        router_names = ['drinc', 'spray'] if args.router == 'both' else [args.router]
        simulations = run_scenario(settings, router_names, args.trace,
                                   progress=not args.no_progress,
                                   track_node=0 if args.plot else None)
    except ConfigurationError as e:
        logger.error("Erreur de configuration: %s", e)
        return 2

    results = {name: sim.report.summary() for name, sim in simulations.items()}
    print("\n### Comparaison des performances ###")
    print(generate_comparative_table(results))

    outdir = settings.get('outdir', CONFIG['outdir'])
    os.makedirs(outdir, exist_ok=True)
    metrics_to_dataframe(results).to_csv(os.path.join(outdir, 'router_comparison.csv'), index=False)
    for name, sim in simulations.items():
        sim.report.save_csv(os.path.join(outdir, f"messages_{name}.csv"))
    logger.info("Résultats sauvegardés dans %s", outdir)

    if args.plot:
        plot_latency_cdf({name: sim.report.to_dataframe() for name, sim in simulations.items()},
                         os.path.join(outdir, 'latency_cdf.png'))
        if 'drinc' in simulations:
            drinc = simulations['drinc']
            plot_predictability_history(drinc.history_dataframe(), 0,
                                        os.path.join(outdir, 'drinc_predictabilities.png'))
            print(drinc.world.nodes[0].router.get_routing_info())
    return 0


if __name__ == "__main__":
    sys.exit(main())
