"""Reconcile domain — per-source engine and the run coordinator.

``embedsync.reconcile.run`` pulls in the HTTP provider and the sources
package; import it directly::

    from embedsync.reconcile.run import generate_embeddings
"""

from embedsync.reconcile.engine import (
    CONNECTION_ERRORS,
    ErrorKind,
    OutcomeStatus,
    PageSource,
    ReconcileEngine,
    SourceOutcome,
)

__all__ = [
    "CONNECTION_ERRORS",
    "ErrorKind",
    "OutcomeStatus",
    "PageSource",
    "ReconcileEngine",
    "SourceOutcome",
]
