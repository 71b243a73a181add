"""
Provisioning Package

Idempotent setup, update and cleanup of the embassy server structure.
"""

from .cleanup import CleanupEngine, CleanupResult
from .engine import RoleBook, SetupResult, TopologyBuilder
from .reconciler import Outcome, Pacer, ReconcileStats, Reconciler
from .reporting import send_safe_followup
from .spec import ALLY_PROFILE, MODERATION_PROFILE, TopologyProfile, get_profile

__all__ = [
    "ALLY_PROFILE",
    "MODERATION_PROFILE",
    "CleanupEngine",
    "CleanupResult",
    "Outcome",
    "Pacer",
    "ReconcileStats",
    "Reconciler",
    "RoleBook",
    "SetupResult",
    "TopologyBuilder",
    "TopologyProfile",
    "get_profile",
    "send_safe_followup",
]
