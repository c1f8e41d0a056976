"""Tests for rollblock/runner.py: move scripts and replay logging."""

import json
import os

import pandas as pd
import pytest

from rollblock.core.config import Config, RunnerConfig
from rollblock.runner import ReplayRunner, parse_move_script

from conftest import fast_engine


class TestParseMoveScript:
    def test_letters_and_swaps(self):
        actions = parse_move_script("RRD S uuuu")
        assert [a.action_type for a in actions] == ["move"] * 3 + ["swap"] + ["move"] * 4
        assert actions[2].parameters == {"direction": "down"}
        assert actions[-1].parameters == {"direction": "up"}

    def test_words_and_wait(self):
        actions = parse_move_script("left, up wait:5 restart")
        assert [a.action_type for a in actions] == ["move", "move", "wait", "restart"]
        assert actions[2].parameters == {"ticks": 5}

    def test_comment_lines(self):
        actions = parse_move_script("# level 1\nRDD\nRRDR\n")
        assert len(actions) == 7

    def test_unknown_letter(self):
        with pytest.raises(ValueError, match="Unknown move 'X'"):
            parse_move_script("RRX")

    def test_parameters_are_not_shared(self):
        first, second = parse_move_script("RR")
        first.parameters["direction"] = "left"
        assert second.parameters == {"direction": "right"}


def make_config(tmp_path, **engine_overrides) -> Config:
    return Config(
        runner=RunnerConfig(
            experiment_name="test_replay",
            log_dir=str(tmp_path / "logs"),
            results_path=str(tmp_path / "results" / "replay.csv"),
            verbose=False,
        ),
        engine=fast_engine(**engine_overrides),
    )


class TestReplayRunner:
    def test_level_one_replay(self, tmp_path):
        config = make_config(tmp_path)
        runner = ReplayRunner(config)
        results = runner.run("RDDRRDR")
        runner.close()

        assert results["level_reached"] == 2
        assert results["moves"] == 7
        assert results["misses"] == 0
        assert results["rejected_actions"] == 0
        assert results["steps"] == 7

        log_file = os.path.join(runner.logger.run_dir, "experiment_log.json")
        with open(log_file) as f:
            logs = json.load(f)
        assert logs[0]["step_type"] == "initial"
        assert len(logs) == 8
        assert os.path.exists(os.path.join(runner.logger.run_dir, "summary.txt"))

        table = pd.read_csv(config.runner.results_path)
        assert len(table) == 1
        assert table.loc[0, "level_reached"] == 2

    def test_results_table_appends(self, tmp_path):
        config = make_config(tmp_path)
        for script in ("R", "L"):
            runner = ReplayRunner(config)
            runner.run(script)
            runner.close()
        table = pd.read_csv(config.runner.results_path)
        assert list(table["script"]) == ["R", "L"]
        assert list(table["misses"]) == [0, 1]

    def test_script_stops_at_game_over(self, tmp_path):
        config = make_config(tmp_path, miss_limit=1)
        runner = ReplayRunner(config)
        results = runner.run("L RRRR", save=False)
        assert results["game_over"]
        assert not results["won"]
        assert results["steps"] == 1
        assert not os.path.exists(config.runner.results_path)

    def test_rejected_actions_counted(self, tmp_path):
        runner = ReplayRunner(make_config(tmp_path))
        results = runner.run("S R", save=False)
        assert results["rejected_actions"] == 1
        assert results["moves"] == 1

    def test_images_saved_when_enabled(self, tmp_path):
        config = make_config(tmp_path)
        config.runner.save_images = True
        runner = ReplayRunner(config)
        runner.run("R")
        images = os.listdir(runner.logger.images_dir)
        assert sorted(images) == ["step_0.png", "step_1.png"]

    def test_history_records_each_step(self, tmp_path):
        runner = ReplayRunner(make_config(tmp_path))
        runner.run("S RR", save=False)
        assert [record.action.action_type for record in runner.history] == ["swap", "move", "move"]
        assert [record.result["status"] for record in runner.history] == ["error", "success", "success"]

        last = runner.history[-1].to_dict()
        assert last["action"]["parameters"] == {"direction": "right"}
        assert last["observation"]["state"]["step"] == 3
