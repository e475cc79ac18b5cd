#!/usr/bin/env python3
# protocols/__init__.py
"""
Package des routeurs DTN.

Ce package contient les différentes stratégies de routage pour les réseaux
tolérants aux délais (DTN).

Routeurs disponibles:
- DTNRouter: Classe de base (buffer, négociation des transferts, requêtes entre pairs)
- DrincRouter: Routage probabiliste transitif à nombre de copies limité
- SprayAndWaitRouter: Implémentation du protocole Spray-and-Wait (binaire et source)
"""

from protocols.base import (DTNRouter, PeerView, IncompatibleRouterError,
                            CopyCountMissingError)
from protocols.drinc import DrincRouter
from protocols.spray_and_wait import SprayAndWaitRouter

ROUTERS = {
    'drinc': DrincRouter,
    'spray': SprayAndWaitRouter,
}

__all__ = ['DTNRouter', 'PeerView', 'IncompatibleRouterError', 'CopyCountMissingError',
           'DrincRouter', 'SprayAndWaitRouter', 'ROUTERS']
