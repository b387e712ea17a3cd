# tests/test_growth_suite.py
"""End-to-end runs of the latent growth suite on small simulated data."""

from pathlib import Path

import pandas as pd
import pytest

from walkthrough.growth import growth_suite


def _read(output_dir, name):
    return pd.read_csv(Path(output_dir) / name, encoding="utf-8-sig")


class TestRegistry:

    def test_analysis_order(self):
        assert list(growth_suite.ANALYSES) == [
            "simulate", "descriptives", "univariate_growth", "parallel_process", "factor_scores", "bootstrap",
        ]

    def test_unknown_analysis(self, growth_config):
        with pytest.raises(ValueError, match="Unknown analysis"):
            growth_suite.run("nope", config=growth_config, verbose=False)


class TestGrowthSuite:

    @pytest.fixture(scope="class")
    def full_run(self, tmp_path_factory):
        output_dir = tmp_path_factory.mktemp("growth_run")
        results = growth_suite.run(
            config=None,
            overrides={
                "output_dir": str(output_dir),
                "simulation": {"n": 250},
                "bootstrap": {"n_bootstrap": 3},
            },
            verbose=False,
        )
        return output_dir, results

    def test_all_outputs_written(self, full_run):
        output_dir, results = full_run
        assert set(results) == set(growth_suite.ANALYSES)
        for spec in growth_suite.ANALYSES.values():
            for filename in spec.outputs:
                assert (output_dir / filename).exists(), filename

    def test_descriptives(self, full_run):
        output_dir, _ = full_run
        desc = _read(output_dir, "wave_descriptives.csv")
        assert len(desc) == 8
        x = desc[desc["construct"] == "x"].sort_values("wave")
        assert x["mean"].is_monotonic_increasing
        traj = _read(output_dir, "individual_trajectories.csv")
        assert list(traj.columns[:2]) == ["id", "construct"]
        assert len(traj) == 500

    def test_linear_growth_selected(self, full_run):
        output_dir, _ = full_run
        selected = _read(output_dir, "selected_shapes.csv").set_index("construct")
        assert selected.loc["x", "selected_shape"] in ("linear", "quadratic")
        assert selected.loc["y", "selected_shape"] in ("linear", "quadratic")
        lrt = _read(output_dir, "univariate_lrt.csv")
        first = lrt[(lrt["construct"] == "x")].iloc[0]
        assert first["restricted"] == "x_intercept"
        assert bool(first["significant"])
        assert first["delta_df"] == 3

    def test_mean_structure_used(self, full_run):
        output_dir, _ = full_run
        assert set(_read(output_dir, "univariate_fits.csv")["method"]) == {"semopy_means"}
        assert set(_read(output_dir, "parallel_fits.csv")["method"]) == {"semopy_means"}
        estimates = _read(output_dir, "parallel_factor_estimates.csv")
        means = estimates[estimates["kind"] == "mean"].set_index("lval")["estimate"]
        assert set(means.index) == {"i_x", "s_x", "i_y", "s_y"}
        assert means["i_x"] == pytest.approx(10.0, abs=0.6)
        assert means["i_y"] == pytest.approx(20.0, abs=0.6)

    def test_parallel_comparisons(self, full_run):
        output_dir, _ = full_run
        fits = _read(output_dir, "parallel_fits.csv")
        assert set(fits["model"]) == {
            "parallel_independent", "parallel_correlated", "parallel_regression", "parallel_regression_zero",
        }
        assert fits["aic"].is_monotonic_increasing

        lrt = _read(output_dir, "parallel_lrt.csv").set_index("restricted")
        assert lrt.loc["parallel_independent", "preferred"] == "parallel_correlated"
        assert lrt.loc["parallel_independent", "delta_df"] == 4

        estimates = _read(output_dir, "parallel_factor_estimates.csv")
        cov = estimates[(estimates["kind"] == "covariance")
                        & (estimates["lval"] == "i_x") & (estimates["rval"] == "i_y")]
        assert len(cov) == 1
        # Population correlation 2 / sqrt(4 * 6) = 0.41
        assert 0.1 < cov["correlation"].iloc[0] < 0.7

    def test_factor_scores(self, full_run):
        output_dir, results = full_run
        scores = results["factor_scores"]["scores"]
        assert len(scores) == 250
        assert {"id", "i_x", "s_x", "i_y", "s_y", "z_i_x", "z_s_y"}.issubset(scores.columns)
        assert scores["z_i_x"].std() == pytest.approx(1.0)

    def test_bootstrap(self, full_run):
        output_dir, _ = full_run
        boot = _read(output_dir, "bootstrap_ci.csv")
        assert (boot["n_requested"] == 3).all()
        assert {"ci_low", "ci_high", "excludes_zero"}.issubset(boot.columns)


class TestDataSources:

    def test_cached_simulation_is_reused(self, growth_config):
        growth_suite.run("simulate", config=growth_config, verbose=False)
        output_dir = Path(growth_config["output_dir"])
        cached = _read(output_dir, growth_suite.SIMULATED_FILE).head(40)
        cached.to_csv(output_dir / growth_suite.SIMULATED_FILE, index=False, encoding="utf-8-sig")

        reused = growth_suite.run("descriptives", config=growth_config, verbose=False)
        assert reused["descriptives"]["descriptives"]["n"].iloc[0] == 40

        rebuilt = growth_suite.run("descriptives", config=growth_config, verbose=False, force_rebuild=True)
        assert rebuilt["descriptives"]["descriptives"]["n"].iloc[0] == 250

    def test_cached_simulation_ignored_after_settings_change(self, growth_config):
        growth_suite.run("simulate", config=growth_config, verbose=False)
        output_dir = Path(growth_config["output_dir"])
        assert (output_dir / growth_suite.SIMULATION_KEY_FILE).exists()

        changed = growth_suite.resolve_config(growth_config, {"simulation": {"n": 120}})
        assert growth_suite.simulation_key(changed) != growth_suite.simulation_key(growth_config)
        result = growth_suite.run("descriptives", config=changed, verbose=False)
        assert result["descriptives"]["descriptives"]["n"].iloc[0] == 120

    def test_external_data_path(self, growth_config, wide_data, tmp_path):
        path = tmp_path / "panel.csv"
        wide_data.head(60).to_csv(path, index=False)
        cfg = dict(growth_config, data={"path": str(path), "id_col": "id"})
        result = growth_suite.run("descriptives", config=cfg, verbose=False)
        assert result["descriptives"]["trajectories"]["id"].nunique() == 60

    def test_unequal_waves(self, growth_config, wide_data, tmp_path):
        path = tmp_path / "uneven.csv"
        wide_data.drop(columns=["y4"]).to_csv(path, index=False)
        cfg = dict(growth_config, data={"path": str(path)})
        with pytest.raises(ValueError, match="different numbers of waves"):
            growth_suite.run("parallel_process", config=cfg, verbose=False)


class TestHeywoodResolution:

    @pytest.fixture
    def heywood_config(self, growth_config, heywood_data, tmp_path):
        path = tmp_path / "heywood.csv"
        heywood_data.to_csv(path, index=False)
        return growth_suite.resolve_config(growth_config, {
            "data": {"path": str(path)},
            "constructs": ["x"],
            "univariate": {"shapes": ["intercept", "linear"]},
        })

    def test_inadmissible_fit_refitted(self, heywood_config):
        result = growth_suite.run("univariate_growth", config=heywood_config, verbose=False)["univariate_growth"]
        issues = result["admissibility"]
        assert set(issues["model"]) == {"x_linear"}
        assert "s_x" in set(issues["lval"]) | set(issues["rval"])

        fits = result["fits"].set_index("shape")
        assert fits.loc["linear", "model"] == "x_linear_fixed_s_x"
        assert bool(fits.loc["linear", "admissible"])
        assert fits.loc["intercept", "model"] == "x_intercept"

    def test_refit_disabled(self, heywood_config):
        cfg = growth_suite.resolve_config(heywood_config, {"univariate": {"resolve_heywood": False}})
        result = growth_suite.run("univariate_growth", config=cfg, verbose=False)["univariate_growth"]
        fits = result["fits"].set_index("shape")
        assert fits.loc["linear", "model"] == "x_linear"
        assert not bool(fits.loc["linear", "admissible"])
        assert result["selected"].set_index("construct").loc["x", "selected_shape"] == "intercept"
