"""
RevRec Engine - Revenue Recognition Scheduling & Allocation Engine

Deterministic implementation of the five-step revenue recognition model.
Resolves transaction prices from variable consideration, allocates them across
performance obligations, expands allocations into dated recognition schedules
and records recognition, adjustment and reversal events in an append-only ledger.
"""

__version__ = "0.1.0"
__author__ = "RevRec Team"
