"""
HyperNode Admission Validation Package

This package validates HyperNode topology resources before they are persisted:
member selector consistency and the create/update rules for the
``volcano.sh/hypernodes`` membership label.
"""

from .errors import AdmissionError
from .hypernodes import HyperNodeValidator, register_hypernode_hooks, validate_members
from .models import HyperNode
from .registry import Registry
from .store import InMemoryTopologyStore, KubernetesTopologyStore, TopologyStore
from .validator import validating

__all__ = [
    'AdmissionError',
    'HyperNode',
    'HyperNodeValidator',
    'InMemoryTopologyStore',
    'KubernetesTopologyStore',
    'Registry',
    'TopologyStore',
    'register_hypernode_hooks',
    'validate_members',
    'validating',
]
