"""Formula handling.

Formulas are parsed by :mod:`patsy` (``response ~ predictors``).  The
model always carries its own intercept ``alpha``, so the ``Intercept``
column patsy adds is removed from the design matrix; categorical
predictors are expanded by patsy's usual treatment coding and the
resulting column names become predictor names.

Mixed-model syntax (``(1 | group)``, ``(x | group)``) is not supported
and is rejected before patsy sees the formula.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import pandas as pd
import patsy


def _grouping_term(rhs: str) -> str | None:
    """Return the bracketed term around the first ``|`` in *rhs*."""
    opened: list[int] = []
    for pos, char in enumerate(rhs):
        if char == "(":
            opened.append(pos)
        elif char == ")" and opened:
            opened.pop()
        elif char == "|":
            if not opened:
                return rhs.strip()
            start, depth = opened[0], 0
            for end in range(start, len(rhs)):
                depth += {"(": 1, ")": -1}.get(rhs[end], 0)
                if depth == 0:
                    return rhs[start : end + 1]
            return rhs[start:]
    return None


def check_random_effects(formula: str) -> None:
    """Raise if *formula* contains a random-effects term.

    Any ``|`` on the right-hand side is a grouping bar, however the
    term inside it is nested (``(1 | g)``, ``(log(x) | g)``).

    Raises:
        ValueError: If a ``(term | group)`` term is present.
    """
    term = _grouping_term(formula.split("~", 1)[-1])
    if term is not None:
        msg = (
            f"Random-effects term {term!r} is not supported; "
            "only fixed-effects formulas can be fitted."
        )
        raise ValueError(msg)


def parse_formula(
    formula: str,
    data: pd.DataFrame,
) -> tuple[np.ndarray, np.ndarray, str, tuple[str, ...]]:
    """Build the outcome vector and design matrix for *formula*.

    Args:
        formula: Patsy formula ``response ~ predictors``.
        data: Data frame holding every variable the formula uses.

    Returns:
        ``(y, X, response_name, predictor_names)``.  ``X`` has one
        column per predictor and no intercept column.

    Raises:
        ValueError: On random-effects terms, a formula without a
            response, a multi-column response, missing values, or a
            formula with no predictors.
    """
    check_random_effects(formula)
    if "~" not in formula:
        msg = f"Formula {formula!r} has no response; expected 'y ~ x1 + x2'."
        raise ValueError(msg)

    try:
        y_df, X_df = patsy.dmatrices(
            formula, data, return_type="dataframe", NA_action="raise"
        )
    except patsy.PatsyError as exc:
        msg = f"Could not build the design for {formula!r}: {exc}"
        raise ValueError(msg) from exc

    if y_df.shape[1] != 1:
        msg = (
            f"The response of {formula!r} expands to {y_df.shape[1]} columns "
            f"({list(y_df.columns)}); a single numeric response is required."
        )
        raise ValueError(msg)
    X_df = X_df.drop(columns=["Intercept"], errors="ignore")
    if X_df.shape[1] == 0:
        msg = f"Formula {formula!r} has no predictors."
        raise ValueError(msg)

    response = str(y_df.columns[0])
    return (
        y_df.iloc[:, 0].to_numpy(dtype=float),
        X_df.to_numpy(dtype=float),
        response,
        tuple(str(c) for c in X_df.columns),
    )


def default_names(n_columns: int) -> tuple[str, ...]:
    """Auto-generated predictor names ``X1 .. Xn``."""
    return tuple(f"X{k}" for k in range(1, n_columns + 1))


def formula_from_names(response: str, names: Sequence[str]) -> str:
    """Equivalent formula ``response ~ name1 + name2 + ...``."""
    return f"{response} ~ {' + '.join(names)}"
