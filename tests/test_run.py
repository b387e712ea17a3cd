# tests/test_run.py
"""Tests for the suite runner and the command-line entry point."""

import pytest

from walkthrough import run as runner
from walkthrough.__main__ import main


class TestRunSuite:

    def test_unknown_suite(self):
        with pytest.raises(ValueError, match="Unknown suite"):
            runner.run_suite("survival")

    def test_single_analysis(self, growth_config, tmp_path):
        results = runner.run_suite("growth", analysis="simulate", verbose=False, config=growth_config)
        assert list(results) == ["simulate"]
        assert len(results["simulate"]["data"]) == 250

    def test_run_all_continues_after_failure(self, monkeypatch):
        calls = []

        def fake_run_suite(name, **kwargs):
            calls.append(name)
            if name == "growth":
                raise RuntimeError("boom")
            return {"ok": True}

        monkeypatch.setattr(runner, "run_suite", fake_run_suite)
        results = runner.run_all_suites(verbose=False)
        assert calls == runner.SUITE_ORDER
        assert results == {"growth": None, "trees": {"ok": True}}

    def test_run_all_stops_on_error(self, monkeypatch):
        def fake_run_suite(name, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(runner, "run_suite", fake_run_suite)
        with pytest.raises(RuntimeError):
            runner.run_all_suites(verbose=False, skip_on_error=False)

    def test_list_suites(self, capsys):
        runner.list_suites()
        out = capsys.readouterr().out
        assert "growth" in out and "trees" in out
        assert "univariate_growth" in out
        assert "compare_models" in out


class TestMain:

    def test_list(self, capsys):
        assert main(["--list"]) == 0
        assert "AVAILABLE ANALYSIS SUITES" in capsys.readouterr().out

    def test_no_arguments_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_bad_suite_returns_error(self):
        assert main(["-s", "survival", "-q"]) == 1

    def test_bad_override_returns_error(self):
        assert main(["-s", "growth", "-a", "simulate", "--set", "broken", "-q"]) == 1

    def test_suite_with_overrides(self, tmp_path):
        out = tmp_path / "cli"
        code = main([
            "-s", "growth", "-a", "simulate", "-q",
            "--set", f"output_dir={out}",
            "--set", "simulation.n=30",
        ])
        assert code == 0
        assert (out / "simulated_data.csv").exists()
