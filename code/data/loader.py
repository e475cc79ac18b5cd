# data/loader.py
import pandas as pd

from simulation.contacts import ContactEvent

UP_STATES = {'up', '1', 'true'}
DOWN_STATES = {'down', '0', 'false'}


def load_contact_trace(path):
    """
    Charge une trace de contacts.

    Deux formats sont acceptés:
    - CSV avec en-tête: time,from,to,state (state = up/down)
    - format texte d'événements, séparé par des espaces: "<time> CONN <from> <to> <up|down>"

    Args:
        path: Chemin du fichier de trace

    Returns:
        list(ContactEvent): événements triés par instant
    """
    print("### Importation de la trace de contacts ###")
    if str(path).endswith('.csv'):
        df = pd.read_csv(path, header=0)
    else:
        df = pd.read_csv(path, sep=r'\s+', header=None, comment='#',
                         names=['time', 'type', 'from', 'to', 'state'])
        df = df[df['type'].astype(str).str.upper() == 'CONN']

    missing = {'time', 'from', 'to', 'state'} - set(df.columns)
    if missing:
        raise ValueError(f"Colonnes manquantes dans la trace {path}: {sorted(missing)}")

    states = df['state'].astype(str).str.strip().str.lower()
    unknown = set(states) - UP_STATES - DOWN_STATES
    if unknown:
        raise ValueError(f"États de contact inconnus dans la trace {path}: {sorted(unknown)}")

    df = df.assign(up=states.isin(UP_STATES)).sort_values('time', kind='stable')
    return [
        ContactEvent(float(t), int(a), int(b), bool(up))
        for t, a, b, up in zip(df['time'], df['from'], df['to'], df['up'])
    ]


def trace_num_nodes(events):
    """Nombre de nœuds nécessaire pour rejouer une trace (ID max + 1)."""
    if not events:
        return 0
    return max(max(e.a, e.b) for e in events) + 1
