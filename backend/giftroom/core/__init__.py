"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - All functions are pure; randomness is injected (DrawEngine takes a Random)

Design Decisions:
    - Functional core separated from imperative shell: RoomCoordinator does the IO,
      core decides what is allowed and what the assignment is
"""
