"""
Session state machine and persistence boundary.

Modules
-------
actions    : the closed action vocabulary (tagged pydantic models) +
             parse_action() for action logs.
reducer    : reduce(state, action): the pure transition function.
store      : SnapshotStore protocol, JSON file / in-memory stores,
             serialize_state() + restore_state() with field-level fallback.
controller : DiagnosisSession: dispatch + snapshot write-through + the
             convenience helpers and progress getters used by a UI.
"""
