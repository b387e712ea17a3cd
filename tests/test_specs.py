# tests/test_specs.py
"""Tests for growth model specifications and syntax rendering."""

import pytest

from walkthrough.growth.specs import (
    GrowthSpec,
    build_growth_syntax,
    construct,
    spec_from_config,
    validate_spec,
    with_fixed_variance,
)


def _lines(spec):
    return build_growth_syntax(spec).splitlines()


class TestConstruct:

    def test_indicators_and_codes(self):
        c = construct("x", 4)
        assert c.indicators == ["x1", "x2", "x3", "x4"]
        assert c.time_codes == [0.0, 1.0, 2.0, 3.0]

    @pytest.mark.parametrize("shape,factors", [
        ("intercept", ["i_x"]),
        ("linear", ["i_x", "s_x"]),
        ("quadratic", ["i_x", "s_x", "q_x"]),
    ])
    def test_factors_by_shape(self, shape, factors):
        assert construct("x", 4, shape=shape).factors == factors


class TestSyntax:

    def test_fixed_loadings(self):
        spec = GrowthSpec("q", [construct("x", 4, shape="quadratic")])
        lines = _lines(spec)
        assert "i_x =~ 1*x1 + 1*x2 + 1*x3 + 1*x4" in lines
        assert "s_x =~ 0*x1 + 1*x2 + 2*x3 + 3*x4" in lines
        assert "q_x =~ 0*x1 + 1*x2 + 4*x3 + 9*x4" in lines

    def test_fractional_time_codes(self):
        spec = GrowthSpec("f", [construct("x", 3, time_codes=[0, 0.5, 1.5])])
        assert "s_x =~ 0*x1 + 0.5*x2 + 1.5*x3" in _lines(spec)

    def test_mean_structure(self):
        spec = GrowthSpec("m", [construct("x", 3)])
        lines = _lines(spec)
        assert "i_x ~ 1" in lines
        assert "s_x ~ 1" in lines
        assert "x1 ~ 0*1" in lines

        spec.mean_structure = False
        assert not any(line.endswith("~ 1") for line in _lines(spec))

    def test_independent_constructs(self):
        spec = GrowthSpec("ind", [construct("x", 4), construct("y", 4)], association="none")
        lines = _lines(spec)
        assert "i_x ~~ s_x" in lines
        assert "i_y ~~ s_y" in lines
        assert "i_x ~~ 0*i_y" in lines
        assert "s_x ~~ 0*s_y" in lines

    def test_correlated_constructs(self):
        spec = GrowthSpec("cor", [construct("x", 4), construct("y", 4)], association="correlated")
        lines = _lines(spec)
        assert "i_x ~~ i_y" in lines
        assert "s_x ~~ s_y" in lines
        assert not any("0*" in line for line in lines if "~~" in line)

    def test_regression_paths(self):
        spec = GrowthSpec(
            "reg", [construct("x", 4), construct("y", 4)], association="regression",
            regressions=[("s_y", "i_x"), ("s_x", "i_y")],
            fixed_zero_paths=[("s_x", "i_y")],
        )
        lines = _lines(spec)
        assert "s_y ~ i_x" in lines
        assert "s_x ~ 0*i_y" in lines
        # Regressed pairs get no separate covariance
        assert not any(line.startswith("i_x ~~ s_y") for line in lines)

    def test_fixed_variance_zeroes_covariances(self):
        spec = GrowthSpec("fx", [construct("x", 4)], fixed_zero_variances=["s_x"])
        lines = _lines(spec)
        assert "s_x ~~ 0*s_x" in lines
        assert "i_x ~~ 0*s_x" in lines

    def test_equal_residuals(self):
        spec = GrowthSpec("eq", [construct("x", 3)], equal_residuals=True)
        assert "x2 ~~ res_x*x2" in _lines(spec)


class TestValidation:

    def test_too_few_waves(self):
        with pytest.raises(ValueError, match="at least 3 waves"):
            validate_spec(GrowthSpec("bad", [construct("x", 2)]))
        with pytest.raises(ValueError, match="at least 4 waves"):
            validate_spec(GrowthSpec("bad", [construct("x", 3, shape="quadratic")]))

    def test_equal_residuals_relaxes_wave_minimum(self):
        validate_spec(GrowthSpec("ok", [construct("x", 2)], equal_residuals=True))

    def test_unknown_shape(self):
        with pytest.raises(ValueError, match="shape"):
            validate_spec(GrowthSpec("bad", [construct("x", 4, shape="cubic")]))

    def test_regression_requires_paths(self):
        with pytest.raises(ValueError, match="at least one regression"):
            validate_spec(GrowthSpec("bad", [construct("x", 4)], association="regression"))

    def test_paths_require_regression_association(self):
        with pytest.raises(ValueError, match="association 'regression'"):
            validate_spec(GrowthSpec("bad", [construct("x", 4), construct("y", 4)],
                                     regressions=[("s_y", "i_x")]))

    def test_unknown_factor(self):
        with pytest.raises(ValueError, match="q_x"):
            validate_spec(GrowthSpec("bad", [construct("x", 4)], association="regression",
                                     regressions=[("s_x", "q_x")]))

    def test_self_regression(self):
        with pytest.raises(ValueError, match="itself"):
            validate_spec(GrowthSpec("bad", [construct("x", 4)], association="regression",
                                     regressions=[("s_x", "s_x")]))

    def test_fixed_path_must_be_regression(self):
        with pytest.raises(ValueError, match="fixed path"):
            validate_spec(GrowthSpec("bad", [construct("x", 4), construct("y", 4)],
                                     association="regression", regressions=[("s_y", "i_x")],
                                     fixed_zero_paths=[("s_x", "i_y")]))


class TestConfigHelpers:

    def test_spec_from_config(self):
        entry = {
            "constructs": {"x": "linear", "y": "intercept"},
            "association": "regression",
            "regressions": [["i_y", "s_x"]],
            "mean_structure": False,
        }
        spec = spec_from_config("cfg", entry, n_waves=4)
        assert spec.factors == ["i_x", "s_x", "i_y"]
        assert spec.regressions == [("i_y", "s_x")]
        assert spec.mean_structure is False

    def test_spec_from_config_requires_constructs(self):
        with pytest.raises(ValueError, match="constructs"):
            spec_from_config("cfg", {}, n_waves=4)

    def test_with_fixed_variance_copies(self):
        spec = GrowthSpec("lin", [construct("x", 4)])
        fixed = with_fixed_variance(spec, "s_x")
        assert fixed.name == "lin_fixed_s_x"
        assert fixed.fixed_zero_variances == ["s_x"]
        assert spec.fixed_zero_variances == []
