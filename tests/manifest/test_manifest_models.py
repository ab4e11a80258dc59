"""
Tests for src/shared/manifest/models.py

Covers:
- Wire-format parsing (required/optional fields, unknown keys)
- Decode errors for schema violations
- Derived properties (icon, color, video names)
"""

import json
import unittest

from src.shared.errors import DecodeError
from src.shared.manifest import (
    Difficulty,
    WorkoutContainer,
    WorkoutExercise,
    WorkoutManifest,
    parse_manifest_bytes,
)


def _exercise(**overrides):
    data = {
        "section": "Warm-up",
        "move": "Ankle circles",
        "description": "Rotate each ankle",
        "json_file": "ankle_circles.json",
        "beginner": "10 each way",
        "intermediate": "15 each way",
        "advanced": "20 each way",
    }
    data.update(overrides)
    return data


class TestParseManifest(unittest.TestCase):
    def test_parses_containers_in_order(self):
        payload = [
            {"name": "Balance", "icon": "figure.skating", "color": "teal", "exercises": [_exercise()]},
            {"name": "Power", "exercises": []},
        ]
        manifest = parse_manifest_bytes(json.dumps(payload).encode("utf-8"))

        self.assertEqual([c.name for c in manifest], ["Balance", "Power"])
        self.assertEqual(len(manifest), 2)
        exercise = manifest.containers[0].exercises[0]
        self.assertEqual(exercise.move, "Ankle circles")
        self.assertIsNone(exercise.video_file)
        self.assertEqual(exercise.instructions_for(Difficulty.ADVANCED), "20 each way")

    def test_empty_array_is_valid(self):
        manifest = parse_manifest_bytes(b"[]")
        self.assertEqual(len(manifest), 0)
        self.assertEqual(manifest.video_files(), [])

    def test_unknown_keys_are_ignored(self):
        payload = [{"name": "X", "extra": 1, "exercises": [_exercise(rating=5)]}]
        manifest = parse_manifest_bytes(json.dumps(payload).encode("utf-8"))
        self.assertEqual(manifest.containers[0].exercises[0].section, "Warm-up")

    def test_rejects_invalid_payloads(self):
        cases = {
            "not json": b"<html>",
            "object": b'{"name": "X"}',
            "missing exercises": b'[{"name": "X"}]',
            "missing move": json.dumps([{"name": "X", "exercises": [{"section": "Main"}]}]).encode(),
            "wrong type": json.dumps([{"name": 3, "exercises": []}]).encode(),
            "bad video type": json.dumps([{"name": "X", "exercises": [_exercise(video_file=7)]}]).encode(),
            "not utf-8": b"\xff\xfe",
        }
        for label, data in cases.items():
            with self.subTest(case=label):
                with self.assertRaises(DecodeError):
                    parse_manifest_bytes(data)

    def test_error_names_the_offending_element(self):
        payload = [{"name": "Core", "exercises": [_exercise(), {"section": "Main"}]}]
        with self.assertRaises(DecodeError) as ctx:
            parse_manifest_bytes(json.dumps(payload).encode("utf-8"))
        self.assertIn("manifest[0][Core].exercises[1]", str(ctx.exception))


class TestDerivedProperties(unittest.TestCase):
    def test_container_icon_and_color_defaults(self):
        container = WorkoutContainer(name="X")
        self.assertEqual(container.workout_icon, "figure.run")
        self.assertEqual(container.color_tag, "gray")

        self.assertEqual(WorkoutContainer(name="X", color="Orange").color_tag, "orange")
        self.assertEqual(WorkoutContainer(name="X", color="magenta").color_tag, "gray")

    def test_video_file_name_falls_back_to_json_file(self):
        self.assertEqual(WorkoutExercise.from_dict(_exercise()).video_file_name, "ankle_circles")
        ex = WorkoutExercise.from_dict(_exercise(video_file="circles.mov"))
        self.assertEqual(ex.video_file_name, "circles.mov")
        self.assertTrue(ex.has_video)
        self.assertFalse(WorkoutExercise.from_dict(_exercise(video_file="  ")).has_video)

    def test_video_files_unique_in_order(self):
        payload = [
            {"name": "A", "exercises": [_exercise(video_file="squat.mp4"), _exercise(video_file="")]},
            {"name": "B", "exercises": [_exercise(video_file="lunge.mp4"), _exercise(video_file="squat.mp4")]},
        ]
        manifest = WorkoutManifest.from_list(payload)
        self.assertEqual(manifest.video_files(), ["squat.mp4", "lunge.mp4"])

    def test_to_dict_preserves_wire_shape(self):
        payload = [{"name": "A", "color": "red", "exercises": [_exercise(video_file="squat.mp4")]}]
        manifest = WorkoutManifest.from_list(payload)
        self.assertEqual([c.to_dict() for c in manifest], payload)


if __name__ == "__main__":
    unittest.main()
