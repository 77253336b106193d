"""
Tracking session state machine and application context.

Manages the session lifecycle Idle → AtStop(i) ⇄ AwaitingInventory(scope,
direction) → Idle, and mirrors every change through the persistence gateway.
"""
