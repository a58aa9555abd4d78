"""stepledger - step-count reconciliation and gamification core"""

__version__ = "0.1.0"
