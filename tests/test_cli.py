from __future__ import annotations

import asyncio

import pytest

import main
from smartcane.auth.config import load_identity_config
from smartcane.storage.kv import JsonFileKeyValueStore


def test_parse_assignments() -> None:
    assert main.parse_assignments(["a=1", " font_size = 20 "]) == {"a": "1", "font_size": "20"}
    assert main.parse_assignments(None) == {}
    with pytest.raises(ValueError):
        main.parse_assignments(["novalue"])


def test_settings_command_persists_to_store(capsys) -> None:
    args = main.build_parser().parse_args(["settings", "--set", "voice_feedback_enabled=false"])

    assert asyncio.run(main.run_command(args)) == main.EXIT_OK

    store = JsonFileKeyValueStore(load_identity_config().store_path)
    assert store.get("voiceFeedbackEnabled") == "false"
    assert "voice_feedback_enabled = False" in capsys.readouterr().out


def test_settings_command_rejects_unknown_key(capsys) -> None:
    args = main.build_parser().parse_args(["settings", "--set", "volume=3"])
    assert asyncio.run(main.run_command(args)) == main.EXIT_AUTH_ERROR


def test_remote_commands_need_configuration(capsys) -> None:
    args = main.build_parser().parse_args(["status"])
    assert asyncio.run(main.run_command(args)) == main.EXIT_NOT_CONFIGURED
    assert "SUPABASE_URL" in capsys.readouterr().err


def test_places_add_search_and_delete(capsys) -> None:
    parser = main.build_parser()
    add = parser.parse_args(["places", "--add", "Home", "--lat", "43.65", "--lon", "-79.38", "--category", "Home"])
    assert asyncio.run(main.run_command(add)) == main.EXIT_OK
    capsys.readouterr()

    assert asyncio.run(main.run_command(parser.parse_args(["places", "--search", "HOME"]))) == main.EXIT_OK
    listing = capsys.readouterr().out
    assert "Home" in listing
    place_id = listing.split()[0]

    assert asyncio.run(main.run_command(parser.parse_args(["places", "--delete", place_id]))) == main.EXIT_OK
    capsys.readouterr()
    assert asyncio.run(main.run_command(parser.parse_args(["places"]))) == main.EXIT_OK
    assert capsys.readouterr().out == ""


def test_places_add_needs_coordinates(capsys) -> None:
    args = main.build_parser().parse_args(["places", "--add", "Home"])
    assert asyncio.run(main.run_command(args)) == main.EXIT_AUTH_ERROR
    assert "--lat" in capsys.readouterr().err


def test_signal_command_speaks_warnings(capsys) -> None:
    args = main.build_parser().parse_args(["signal", "F:120", "STOP"])

    assert asyncio.run(main.run_command(args)) == main.EXIT_OK

    out = capsys.readouterr().out
    assert "There is an obstacle 120 cm in front of you." in out
    assert "Stop immediately." in out
