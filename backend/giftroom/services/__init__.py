"""Service Layer — imperative shell around the pure core.

Invariants:
    - RoomCoordinator is the only writer of room, participant and draw-result state
    - ConnectionRegistry, EventBus and RoomLocks are constructed once per app instance
      and injected; no module holds them as ambient globals
"""
