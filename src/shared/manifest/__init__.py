"""
Workout manifest model and parser.
"""

from __future__ import annotations

from .models import (
    Difficulty,
    Instructions,
    WorkoutContainer,
    WorkoutExercise,
    WorkoutManifest,
    parse_manifest_bytes,
)

__all__ = [
    "Difficulty",
    "Instructions",
    "WorkoutContainer",
    "WorkoutExercise",
    "WorkoutManifest",
    "parse_manifest_bytes",
]
