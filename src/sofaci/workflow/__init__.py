"""Pipeline state machine."""
