# config.py
"""
Configuration centralisée du routeur DRINC et des scénarios de simulation.

Les paramètres du routeur sont regroupés par espace de noms (par exemple
``DRINC.secondsInTimeUnit``). Les paramètres obligatoires absents lèvent une
ConfigurationError dès la construction du routeur.
"""
import copy
import json
import os

# Configuration centralisée pour tout le projet
CONFIG = {
    'DRINC': {
        'secondsInTimeUnit': 30,   # Taille d'une unité de temps pour le vieillissement (s)
        'nrofCopies': 6,           # Nombre initial de copies par message
    },
    'SprayAndWait': {
        'nrofCopies': 6,
        'binaryMode': True,
    },
    'router': {
        'buffer_size': 5_000_000,   # Taille du buffer de chaque nœud (octets)
        'msg_ttl': 6 * 3600,        # Durée de vie des messages (s)
        'queue_mode': 'random',     # Ordre d'envoi: 'random' ou 'fifo'
    },
    'scenario': {
        'num_nodes': 20,
        'steps': 720,               # Nombre de pas de simulation
        'step_duration': 60,        # Durée d'un pas (s)
        'connectivity': 0.04,       # Probabilité de lien entre deux nœuds à chaque pas
        'transmit_speed': 250_000,  # Débit des liens (octets/s)
        'message_interval': 600,    # Intervalle entre deux créations de message (s)
        'message_size': 500_000,    # Taille des messages (octets)
        'seed': 42,
    },
    'outdir': '../data_logs',
}

DRINC_NS = 'DRINC'

# Chemins et constantes
OUTDIR = CONFIG['outdir']

_MISSING = object()


class ConfigurationError(Exception):
    """Paramètre de configuration absent ou invalide (erreur fatale au démarrage)."""


def get_setting(namespace: str, key: str, settings: dict = None, default=_MISSING):
    """
    Lit un paramètre dans un espace de noms de la configuration.

    Args:
        namespace (str): Espace de noms (par exemple 'DRINC')
        key (str): Nom du paramètre (par exemple 'nrofCopies')
        settings (dict, optional): Configuration à utiliser. Par défaut CONFIG.
        default: Valeur par défaut. Si absente, le paramètre est obligatoire.

    Returns:
        La valeur du paramètre

    Raises:
        ConfigurationError: si le paramètre obligatoire est absent
    """
    if settings is None:
        settings = CONFIG
    section = settings.get(namespace) or {}
    if key in section:
        return section[key]
    if default is not _MISSING:
        return default
    raise ConfigurationError(f"Paramètre obligatoire manquant: {namespace}.{key}")


def load_config(path: str = None) -> dict:
    """
    Charge une configuration en superposant un fichier JSON aux valeurs par défaut.

    Seules les sections présentes dans le fichier sont remplacées, clé par clé.
    Une valeur ``null`` supprime la clé correspondante.

    Args:
        path (str, optional): Chemin du fichier JSON

    Returns:
        dict: Configuration complète
    """
    settings = copy.deepcopy(CONFIG)
    if not path:
        return settings
    if not os.path.exists(path):
        raise ConfigurationError(f"Fichier de configuration introuvable: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        overrides = json.load(f)

    for section, values in overrides.items():
        if isinstance(values, dict):
            target = settings.setdefault(section, {})
            for key, value in values.items():
                if value is None:
                    target.pop(key, None)
                else:
                    target[key] = value
        else:
            settings[section] = values
    return settings
