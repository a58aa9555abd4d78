"""Health source reading, reconciliation and window sync"""
from stepledger.health.source import HealthSource
from stepledger.health.reconciler import AnomalyPolicy, StepReconciler, choose_steps
from stepledger.health.sync import DuplicateReport, SyncReport, WeeklySyncEngine

__all__ = [
    "HealthSource",
    "AnomalyPolicy",
    "StepReconciler",
    "choose_steps",
    "DuplicateReport",
    "SyncReport",
    "WeeklySyncEngine",
]
