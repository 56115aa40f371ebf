import json
from pathlib import Path

from scarcely.cli.play import DEFAULT_SAVE_PATH, main, run_headless
from scarcely.sim.core import Simulation


def test_headless_run_prints_a_frame_and_saves(tmp_path: Path, capsys) -> None:
    save_path = tmp_path / "session.json"

    result = main(["--seed", "abc", "--headless", "--ticks", "4", "--save-path", str(save_path)])

    assert result == 0
    assert "tick=4" in capsys.readouterr().out
    payload = json.loads(save_path.read_text(encoding="utf-8"))
    assert payload["world"]["seed"] == "abc"
    assert payload["simulation"]["tick"] == 4


def test_headless_run_resumes_an_existing_save(tmp_path: Path) -> None:
    save_path = tmp_path / "session.json"
    main(["--seed", "abc", "--headless", "--ticks", "3", "--save-path", str(save_path)])

    main(["--headless", "--ticks", "2", "--save-path", str(save_path)])

    payload = json.loads(save_path.read_text(encoding="utf-8"))
    assert payload["world"]["seed"] == "abc"
    assert payload["simulation"]["tick"] == 5


def test_run_headless_walks_in_the_requested_direction() -> None:
    sim = Simulation.new_game("abc")

    run_headless(sim, ticks=4, walk="east")

    assert sim.state.player.x > 0
    assert sim.state.player.y == 0


def test_windowed_launch_hands_the_save_path_to_the_viewer(tmp_path: Path, monkeypatch) -> None:
    save_path = tmp_path / "session.json"
    captured = {}

    def fake_run(**kwargs):
        captured.update(kwargs)
        return 0

    monkeypatch.setattr("scarcely.cli.play.run_pygame_viewer", fake_run)

    result = main(["--seed", "abc", "--save-path", str(save_path)])

    assert result == 0
    assert captured["save_path"] == str(save_path)
    assert save_path.exists()


def test_windowed_launch_defaults_to_the_session_save(monkeypatch) -> None:
    captured = {}

    def fake_run(**kwargs):
        captured.update(kwargs)
        return 0

    monkeypatch.setattr("scarcely.cli.play.run_pygame_viewer", fake_run)
    monkeypatch.setattr("scarcely.cli.play.load_state", lambda path: Simulation.new_game("abc"))

    result = main([])

    assert result == 0
    assert captured["save_path"] == DEFAULT_SAVE_PATH
