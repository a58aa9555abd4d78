"""
Service Layer Package

Wires the engines around one document store, health source and auth
provider:
- WeeklySyncEngine (with its StepReconciler)
- StreakCalculator, LevelEngine, BadgeAwarder
- DailyBonusEngine, StreakProtectionEngine
"""

from stepledger.services.container import ServiceContainer, get_container, init_container

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
]
