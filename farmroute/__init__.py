"""
FarmRoute - Farming Route Tracking and Inventory Reconciliation

Tracks progress through repeatable multi-stop collection routes and reconciles
harvestable-resource inventory counts observed at route and stop checkpoints.
State is mirrored to a primary SQLite store with a flat-file fallback.
"""

__version__ = "0.1.0"
__author__ = "FarmRoute Team"
