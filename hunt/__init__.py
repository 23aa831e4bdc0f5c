"""Haunted hunt engine package.

This package provides the progression engine for the location-based
scavenger hunt, including:

- Answer normalisation and the static hunt definition
- Persisted progress with in-memory fallback
- Location tracking and narration line selection
- The reveal choreographer state machine and its deadline scheduler
- Flask control surface for the player and the operator
"""
