"""glm_simulation — simulate, fit and compare generalized linear models.

Generates synthetic data under known true parameters, fits GLMs by
maximum likelihood (Gamma/log, Poisson/log, negative-binomial/log,
Bernoulli/logit), and compares the fit against the truth that produced
the data.

Public API:
    .. autosummary::
        draw_predictor
        true_mean
        synthesize
        simulate
        fit
        predict_mean
        predict_curve
        compare
        approximate_probability_slope
        recovery_study
        run_scenario
        run_walkthrough
        print_simulation_table
        print_fit_table
        print_comparison_table
        print_recovery_table
        get_backend
        set_backend
        GLMFamily
        GammaFamily
        PoissonFamily
        NegativeBinomialFamily
        BernoulliFamily
        resolve_family
        register_family
        Link
        LogLink
        LogitLink
        resolve_link
        SimulatedData
        FittedModel
        PredictionCurve
        ComparisonResult
        RecoveryStudyResult
        ScenarioResult
        Scenario
        GLMSimulationError
        InvalidParameterError
        DegenerateInputError
        NonConvergenceError
"""

from ._config import get_backend, set_backend
from ._results import (
    ComparisonResult,
    FittedModel,
    PredictionCurve,
    RecoveryStudyResult,
    ScenarioResult,
    SimulatedData,
)
from .compare import approximate_probability_slope, compare
from .display import (
    print_comparison_table,
    print_fit_table,
    print_recovery_table,
    print_simulation_table,
)
from .exceptions import (
    DegenerateInputError,
    GLMSimulationError,
    InvalidParameterError,
    NonConvergenceError,
)
from .families import (
    BernoulliFamily,
    GammaFamily,
    GLMFamily,
    NegativeBinomialFamily,
    PoissonFamily,
    register_family,
    resolve_family,
)
from .fit import fit
from .links import Link, LogitLink, LogLink, resolve_link
from .predict import predict_curve, predict_mean
from .scenarios import DEFAULT_SCENARIOS, Scenario, run_scenario, run_walkthrough
from .simulate import draw_predictor, simulate, synthesize, true_mean
from .validation import recovery_study

__all__ = [
    "SimulatedData",
    "FittedModel",
    "PredictionCurve",
    "ComparisonResult",
    "RecoveryStudyResult",
    "ScenarioResult",
    "draw_predictor",
    "true_mean",
    "synthesize",
    "simulate",
    "fit",
    "predict_mean",
    "predict_curve",
    "compare",
    "approximate_probability_slope",
    "recovery_study",
    "Scenario",
    "DEFAULT_SCENARIOS",
    "run_scenario",
    "run_walkthrough",
    "print_simulation_table",
    "print_fit_table",
    "print_comparison_table",
    "print_recovery_table",
    "get_backend",
    "set_backend",
    "GLMFamily",
    "GammaFamily",
    "PoissonFamily",
    "NegativeBinomialFamily",
    "BernoulliFamily",
    "resolve_family",
    "register_family",
    "Link",
    "LogLink",
    "LogitLink",
    "resolve_link",
    "GLMSimulationError",
    "InvalidParameterError",
    "DegenerateInputError",
    "NonConvergenceError",
]

__version__ = "0.1.0"
