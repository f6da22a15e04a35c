"""Formatted ASCII table display utilities for simulations and fits.

These tables mirror the statsmodels summary style: a top panel of
model-level information and a bottom panel with one row per
coefficient.  When the truth is known (it always is for simulated
data) the true value is printed next to each estimate, which is the
whole point of the walkthrough: the reader sees how close maximum
likelihood gets and whether the interval covers the truth.
"""

from __future__ import annotations

import textwrap
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from ._results import (
        ComparisonResult,
        FittedModel,
        RecoveryStudyResult,
        SimulatedData,
    )

W = 80


def _fmt(val: object, spec: str = ".4f") -> str:
    """Format a number for display; ``None`` and NaN become ``'N/A'``."""
    if val is None:
        return "N/A"
    if isinstance(val, (float, np.floating)):
        if val != val:  # nan check
            return "N/A"
        return f"{val:{spec}}"
    return str(val)


def _wrap(text: str, width: int = W, indent: int = 2) -> str:
    """Word-wrap *text*, indenting only the continuation lines."""
    return textwrap.fill(
        text,
        width=width,
        initial_indent="",
        subsequent_indent=" " * indent,
    )


def _title(title: str) -> None:
    print("=" * W)
    for line in textwrap.wrap(title, width=W - 2):
        print(f"{line:^{W}}")
    print("=" * W)


def _notes(notes: list[str]) -> None:
    if not notes:
        return
    print("-" * W)
    print("Notes")
    print("-" * W)
    for note in notes:
        print(_wrap(f"  [!] {note}", width=W, indent=6))


def print_simulation_table(
    data: SimulatedData,
    *,
    title: str = "Simulated Data",
) -> None:
    """Print the generating setup and outcome summary of a simulation.

    Args:
        data: Output of :func:`~glm_simulation.simulate.simulate`.
        title: Title for the output table.
    """
    lw = 22
    y = data.response
    _title(title)
    print(f"  {'Family:':<{lw}}{data.family.name}")
    print(f"  {'Link:':<{lw}}{data.link.name}")
    print(f"  {'No. Observations:':<{lw}}{data.n}")
    print(
        f"  {'Predictor Range:':<{lw}}"
        f"[{data.predictor.min():.4f}, {data.predictor.max():.4f}]"
    )
    print(
        f"  {'True Predictor:':<{lw}}"
        f"eta = {data.intercept:g} + {data.slope:g} * x"
    )
    if data.family.dispersion_label is not None:
        label = f"True {data.family.dispersion_label.capitalize()}:"
        print(f"  {label:<{lw}}{_fmt(data.dispersion, 'g')}")
    print("-" * W)
    print(f"  {'Y Range:':<{lw}}[{_fmt(float(y.min()), 'g')}, {_fmt(float(y.max()), 'g')}]")
    y_mean = float(np.mean(y))
    y_var = float(np.var(y))
    print(f"  {'Y Mean:':<{lw}}{y_mean:.4f}")
    if y_mean != 0:
        print(f"  {'Y Variance:':<{lw}}{y_var:.4f}  (var/mean = {y_var / y_mean:.2f})")
    else:
        print(f"  {'Y Variance:':<{lw}}{y_var:.4f}")
    print("=" * W)
    print()


def print_fit_table(
    model: FittedModel,
    *,
    truth: SimulatedData | None = None,
    confidence_level: float = 0.95,
    title: str | None = None,
) -> None:
    """Print a coefficient table for a fitted model.

    Args:
        model: Output of :func:`~glm_simulation.fit.fit`.
        truth: Optional simulation whose true parameters are printed
            in a ``True`` column.
        confidence_level: Level of the printed Wald intervals.
        title: Title for the output table.  Defaults to
            ``"<Family> GLM (<link> link)"``.
    """
    if title is None:
        title = f"{model.family.name.replace('_', ' ').title()} GLM ({model.link.name} link)"
    frame = model.summary_frame(confidence_level)
    col1 = W // 2

    _title(title)
    rows = [
        ("No. Observations:", str(model.n_observations), "Backend:", model.backend),
        ("Df Residuals:", str(model.df_residual), "Iterations:", str(model.n_iterations)),
        ("Deviance:", _fmt(model.deviance), "Null Deviance:", _fmt(model.null_deviance)),
        ("Log-Likelihood:", _fmt(model.log_likelihood), "AIC:", _fmt(model.aic)),
        ("Scale:", _fmt(model.scale), "BIC:", _fmt(model.bic)),
    ]
    for ll, lv, rl, rv in rows:
        print(f"{ll:<18}{lv:<{col1 - 18}}{rl:>{col1 - 11}} {rv:>10}")
    if model.family.dispersion_label is not None:
        label = f"{model.family.dispersion_label.capitalize()}:"
        se = (
            f"  (SE {_fmt(model.dispersion_std_error)})"
            if model.dispersion_std_error is not None
            else ""
        )
        print(f"{label:<18}{_fmt(model.dispersion)}{se}")
    print("-" * W)

    pct = f"{confidence_level * 100:g}%"
    header = f"{'':<11}{'Coef':>10}{'Std Err':>10}{'z':>9}{'P>|z|':>9}"
    header += f"{pct + ' CI':>21}"
    if truth is not None:
        header += f"{'True':>10}"
    print(header)
    print("-" * W)
    true_values = (
        {"intercept": truth.intercept, "slope": truth.slope} if truth is not None else {}
    )
    for term, row in frame.iterrows():
        ci = f"[{row['ci_lower']:.3f}, {row['ci_upper']:.3f}]"
        line = (
            f"{term:<11}{row['estimate']:>10.4f}{row['std_error']:>10.4f}"
            f"{row['z']:>9.3f}{_fmt(row['p_value'], '.3g'):>9}{ci:>21}"
        )
        if truth is not None:
            line += f"{true_values[str(term)]:>10.4f}"
        print(line)
    print("=" * W)
    print()


def print_comparison_table(
    comparison: ComparisonResult,
    *,
    title: str = "Fit vs. Truth",
) -> None:
    """Print true against estimated parameters and curve agreement."""
    lw = 24
    _title(title)
    print(f"  {'Generating Family:':<{lw}}{comparison.family}")
    print(f"  {'Fitted Family:':<{lw}}{comparison.fitted_family}")
    print("-" * W)
    print(f"  {'':<{lw}}{'True':>12}{'Estimate':>12}{'Error':>12}{'Covered':>10}")
    for term in ("intercept", "slope"):
        true_val = comparison[f"true_{term}"]
        est = comparison[f"estimated_{term}"]
        err = comparison[f"{term}_error"]
        cov = "yes" if comparison[f"{term}_covered"] else "no"
        print(f"  {term.capitalize() + ':':<{lw}}{true_val:>12.4f}{est:>12.4f}{err:>12.4f}{cov:>10}")
    if comparison.true_dispersion is not None or comparison.estimated_dispersion is not None:
        print(
            f"  {'Dispersion:':<{lw}}"
            f"{_fmt(comparison.true_dispersion):>12}"
            f"{_fmt(comparison.estimated_dispersion):>12}"
        )
    print("-" * W)
    pct = f"{comparison.confidence_level * 100:g}%"
    print(f"  {'Mean Curve RMSE:':<{lw}}{comparison.curve_rmse:.4f}")
    print(f"  {'Max Curve Error:':<{lw}}{comparison.max_curve_error:.4f}")
    print(f"  {pct + ' Band Coverage:':<{lw}}{comparison.band_coverage:.1%}")

    notes: list[str] = []
    if not comparison.family_matches:
        notes.append(
            f"Fitted family {comparison.fitted_family!r} differs from the "
            f"generating family {comparison.family!r}."
        )
    if not (comparison.intercept_covered and comparison.slope_covered):
        notes.append(
            f"At least one true coefficient lies outside its {pct} "
            "interval. Expected occasionally; persistent misses suggest "
            "misspecification."
        )
    _notes(notes)
    print("=" * W)
    print()


def print_recovery_table(
    result: RecoveryStudyResult,
    *,
    title: str = "Parameter Recovery Study",
) -> None:
    """Print bias, RMSE, standard errors and coverage per coefficient."""
    lw = 24
    _title(title)
    print(f"  {'Family:':<{lw}}{result.family}")
    print(f"  {'Observations per Run:':<{lw}}{result.n}")
    print(
        f"  {'Replications:':<{lw}}{result.n_successful} of "
        f"{result.n_replications} converged"
    )
    if result.dispersions is not None:
        print(f"  {'Mean Dispersion:':<{lw}}{float(np.mean(result.dispersions)):.4f}")
    print("-" * W)
    pct = f"{result.confidence_level * 100:g}%"
    print(
        f"{'':<11}{'True':>9}{'Mean':>10}{'Bias':>10}{'RMSE':>10}"
        f"{'Emp. SE':>10}{'Mean SE':>10}{pct + ' Cov':>10}"
    )
    print("-" * W)
    for term, row in result.summary_frame().iterrows():
        print(
            f"{term:<11}{row['true_value']:>9.4f}{row['mean_estimate']:>10.4f}"
            f"{row['bias']:>10.4f}{row['rmse']:>10.4f}{row['empirical_se']:>10.4f}"
            f"{row['mean_se']:>10.4f}{row['coverage']:>10.1%}"
        )
    notes: list[str] = []
    if result.n_failed:
        notes.append(
            f"{result.n_failed} replication(s) failed to converge and were "
            "excluded from the summary."
        )
    _notes(notes)
    print("=" * W)
    print()
