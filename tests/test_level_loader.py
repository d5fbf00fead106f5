import json

from conftest import make_snake

from snake_puzzle.models import Direction, GameLevel, Point
from snake_puzzle.services.generator import generate_solvable_level
from snake_puzzle.services.level_loader import (
    level_file_path,
    level_from_dict,
    level_from_json,
    level_to_dict,
    level_to_json,
    load_level,
    load_level_from_file,
    save_level_to_file,
)


def test_persisted_shape(blocked_level):
    assert level_to_dict(blocked_level) == {
        "width": 5,
        "height": 5,
        "snakes": [
            {"id": 1, "body": [{"x": 3, "y": 2}, {"x": 4, "y": 2}], "headDirection": "left"},
            {"id": 2, "body": [{"x": 1, "y": 2}], "headDirection": "down"},
        ],
    }


def test_round_trip_keeps_generated_level():
    level = generate_solvable_level(8, 8, 6, seed=12)
    assert level_from_dict(level_to_dict(level)) == level
    assert level_from_json(level_to_json(level)) == level


def test_file_round_trip(tmp_path, blocked_level):
    path = save_level_to_file(blocked_level, tmp_path / "nested" / "level_3.json")
    assert path.exists()
    assert load_level_from_file(path) == blocked_level
    assert load_level(3, levels_dir=tmp_path / "nested") == blocked_level
    assert level_file_path(3, tmp_path) == tmp_path / "level_3.json"


def test_legacy_keys_and_pairs_are_normalized():
    raw = {
        "grid": {"width": 4, "height": 3},
        "arrows": [
            {"id": "7", "cells": [[1, 1], [2, 1]], "direction": " LEFT "},
            {"id": 8, "body": [{"x": 0, "y": 0}, {"x": 0, "y": 1}]},
        ],
    }
    level = level_from_dict(raw)

    assert (level.width, level.height) == (4, 3)
    first, second = level.snakes
    assert first == make_snake(7, [(1, 1), (2, 1)], "left")
    # missing direction points away from the neck
    assert second.head_direction == Direction.UP
    assert second.body == (Point(0, 0), Point(0, 1))


def test_bad_snakes_are_dropped_and_ids_repaired():
    raw = {
        "width": 5,
        "height": 5,
        "snakes": [
            {"id": 1, "body": [], "headDirection": "up"},
            {"id": 2, "body": [{"x": 1, "y": 1}], "headDirection": "up"},
            {"id": 2, "body": [{"x": 3, "y": 3}], "headDirection": "nowhere"},
            {"body": [{"x": 4, "y": 4}], "headDirection": "right"},
            "garbage",
        ],
    }
    level = level_from_dict(raw)

    assert [s.id for s in level.snakes] == [2, 3, 4]
    assert level.snakes[1].head_direction == Direction.UP


def test_unusable_input_returns_none(tmp_path):
    assert level_from_dict(None) is None
    assert level_from_dict({"width": 0, "height": 4}) is None
    assert level_from_dict({"height": 4}) is None
    assert level_from_json("{not json") is None

    assert load_level_from_file(tmp_path / "missing.json") is None
    assert load_level(42, levels_dir=tmp_path) is None

    broken = tmp_path / "level_1.json"
    broken.write_text(json.dumps([1, 2, 3]), encoding="utf-8")
    assert load_level_from_file(broken) is None


def test_empty_level_round_trip():
    level = GameLevel(width=2, height=3)
    assert level_from_json(level_to_json(level)) == level


def test_undecodable_file_returns_none(tmp_path):
    path = tmp_path / "level_1.json"
    path.write_bytes(b'{"width": 3, "height": 3, "snakes": [\xff\xfe]}')

    assert load_level_from_file(path) is None
    assert load_level(1, levels_dir=tmp_path) is None
