"""Per-phase reconciliation of the ephemeral and durable stores."""

from worker.reconcile.live_game import LiveGameReconciler
from worker.reconcile.lobby import LobbyReconciler
from worker.reconcile.reset import RoundCloser
from worker.reconcile.types import CleanupResult, Reconciler

__all__ = [
    "CleanupResult",
    "LiveGameReconciler",
    "LobbyReconciler",
    "Reconciler",
    "RoundCloser",
]
