"""
Workout manifest domain model and wire-format parser.

Wire format: a JSON array of containers

    [{"name": ..., "icon": ..., "color": ..., "exercises": [
        {"section": ..., "move": ..., "description": ..., "json_file": ...,
         "video_file": ..., "beginner": ..., "intermediate": ..., "advanced": ...}
    ]}]

`icon`, `color` and `video_file` are optional; unknown keys are ignored.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Mapping, Optional, Sequence

from src.shared.errors import DecodeError


DEFAULT_ICON = "figure.run"
DEFAULT_COLOR = "gray"
KNOWN_COLORS = frozenset({"blue", "orange", "purple", "teal", "green", "red", "yellow", "pink", "gray"})


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


def _require_str(data: Mapping[str, Any], key: str, *, where: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise DecodeError(f"{where}: field {key!r} must be a string")
    return value


def _optional_str(data: Mapping[str, Any], key: str, *, where: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise DecodeError(f"{where}: field {key!r} must be a string or null")
    return value


@dataclass(frozen=True)
class Instructions:
    beginner: str
    intermediate: str
    advanced: str

    def for_level(self, difficulty: Difficulty) -> str:
        return getattr(self, Difficulty(difficulty).value)


@dataclass(frozen=True)
class WorkoutExercise:
    section: str
    move: str
    description: str
    json_file: str
    instructions: Instructions
    video_file: Optional[str] = None

    @property
    def has_video(self) -> bool:
        return bool(self.video_file and self.video_file.strip())

    @property
    def video_file_name(self) -> str:
        if self.video_file:
            return self.video_file
        if self.json_file.endswith(".json"):
            return self.json_file[: -len(".json")]
        return self.json_file

    def instructions_for(self, difficulty: Difficulty) -> str:
        return self.instructions.for_level(difficulty)

    @staticmethod
    def from_dict(data: Mapping[str, Any], *, where: str = "exercise") -> "WorkoutExercise":
        if not isinstance(data, Mapping):
            raise DecodeError(f"{where}: expected an object")
        return WorkoutExercise(
            section=_require_str(data, "section", where=where),
            move=_require_str(data, "move", where=where),
            description=_require_str(data, "description", where=where),
            json_file=_require_str(data, "json_file", where=where),
            video_file=_optional_str(data, "video_file", where=where),
            instructions=Instructions(
                beginner=_require_str(data, "beginner", where=where),
                intermediate=_require_str(data, "intermediate", where=where),
                advanced=_require_str(data, "advanced", where=where),
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "section": self.section,
            "move": self.move,
            "description": self.description,
            "json_file": self.json_file,
        }
        if self.video_file is not None:
            data["video_file"] = self.video_file
        data["beginner"] = self.instructions.beginner
        data["intermediate"] = self.instructions.intermediate
        data["advanced"] = self.instructions.advanced
        return data


@dataclass(frozen=True)
class WorkoutContainer:
    name: str
    exercises: tuple[WorkoutExercise, ...] = ()
    icon: Optional[str] = None
    color: Optional[str] = None

    @property
    def workout_icon(self) -> str:
        return self.icon or DEFAULT_ICON

    @property
    def color_tag(self) -> str:
        color = (self.color or "").strip().lower()
        return color if color in KNOWN_COLORS else DEFAULT_COLOR

    @staticmethod
    def from_dict(data: Mapping[str, Any], *, where: str = "container") -> "WorkoutContainer":
        if not isinstance(data, Mapping):
            raise DecodeError(f"{where}: expected an object")
        name = _require_str(data, "name", where=where)
        raw_exercises = data.get("exercises")
        if not isinstance(raw_exercises, list):
            raise DecodeError(f"{where}: field 'exercises' must be an array")
        return WorkoutContainer(
            name=name,
            icon=_optional_str(data, "icon", where=where),
            color=_optional_str(data, "color", where=where),
            exercises=tuple(
                WorkoutExercise.from_dict(item, where=f"{where}[{name}].exercises[{idx}]")
                for idx, item in enumerate(raw_exercises)
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name}
        if self.icon is not None:
            data["icon"] = self.icon
        if self.color is not None:
            data["color"] = self.color
        data["exercises"] = [e.to_dict() for e in self.exercises]
        return data


@dataclass(frozen=True)
class WorkoutManifest:
    """Ordered sequence of workout containers, replaced wholesale on every fetch."""

    containers: tuple[WorkoutContainer, ...] = ()

    def __iter__(self) -> Iterator[WorkoutContainer]:
        return iter(self.containers)

    def __len__(self) -> int:
        return len(self.containers)

    def video_files(self) -> list[str]:
        """
        Unique, non-empty video file references in manifest order.
        """
        seen: set[str] = set()
        files: list[str] = []
        for container in self.containers:
            for exercise in container.exercises:
                if not exercise.has_video:
                    continue
                name = exercise.video_file.strip()
                if name in seen:
                    continue
                seen.add(name)
                files.append(name)
        return files

    @staticmethod
    def from_list(items: Sequence[Any]) -> "WorkoutManifest":
        if not isinstance(items, list):
            raise DecodeError("manifest: expected a JSON array of containers")
        return WorkoutManifest(
            containers=tuple(
                WorkoutContainer.from_dict(item, where=f"manifest[{idx}]") for idx, item in enumerate(items)
            )
        )


def parse_manifest_bytes(data: bytes) -> WorkoutManifest:
    """
    Decode and validate raw manifest bytes.

    Raises:
        DecodeError: body is not UTF-8 JSON or does not match the container schema.
    """
    try:
        raw = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DecodeError(f"manifest is not valid JSON: {exc}") from exc
    return WorkoutManifest.from_list(raw)
