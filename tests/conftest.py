"""Shared fixtures: the mtcars data and small fitted models.

Fitted models are session-scoped; NUTS on 32 rows is quick, but the
JIT compilation of each family's model is not, so every family is
compiled and sampled once per test session.
"""

from io import StringIO

import numpy as np
import pandas as pd
import pytest

from bayes_glm_models import glm

# Motor Trend road tests, 1973-74 models (Henderson & Velleman, 1981).
_MTCARS = """\
model,mpg,cyl,disp,hp,wt,vs,am,carb
Mazda RX4,21.0,6,160.0,110,2.620,0,1,4
Mazda RX4 Wag,21.0,6,160.0,110,2.875,0,1,4
Datsun 710,22.8,4,108.0,93,2.320,1,1,1
Hornet 4 Drive,21.4,6,258.0,110,3.215,1,0,1
Hornet Sportabout,18.7,8,360.0,175,3.440,0,0,2
Valiant,18.1,6,225.0,105,3.460,1,0,1
Duster 360,14.3,8,360.0,245,3.570,0,0,4
Merc 240D,24.4,4,146.7,62,3.190,1,0,2
Merc 230,22.8,4,140.8,95,3.150,1,0,2
Merc 280,19.2,6,167.6,123,3.440,1,0,4
Merc 280C,17.8,6,167.6,123,3.440,1,0,4
Merc 450SE,16.4,8,275.8,180,4.070,0,0,3
Merc 450SL,17.3,8,275.8,180,3.730,0,0,3
Merc 450SLC,15.2,8,275.8,180,3.780,0,0,3
Cadillac Fleetwood,10.4,8,472.0,205,5.250,0,0,4
Lincoln Continental,10.4,8,460.0,215,5.424,0,0,4
Chrysler Imperial,14.7,8,440.0,230,5.345,0,0,4
Fiat 128,32.4,4,78.7,66,2.200,1,1,1
Honda Civic,30.4,4,75.7,52,1.615,1,1,2
Toyota Corolla,33.9,4,71.1,65,1.835,1,1,1
Toyota Corona,21.5,4,120.1,97,2.465,1,0,1
Dodge Challenger,15.5,8,318.0,150,3.520,0,0,2
AMC Javelin,15.2,8,304.0,150,3.435,0,0,2
Camaro Z28,13.3,8,350.0,245,3.840,0,0,4
Pontiac Firebird,19.2,8,400.0,175,3.845,0,0,2
Fiat X1-9,27.3,4,79.0,66,1.935,1,1,1
Porsche 914-2,26.0,4,120.3,91,2.140,0,1,2
Lotus Europa,30.4,4,95.1,113,1.513,1,1,2
Ford Pantera L,15.8,8,351.0,264,4.170,0,1,4
Ferrari Dino,19.7,6,145.0,175,2.770,0,1,6
Maserati Bora,15.0,8,301.0,335,3.570,0,1,8
Volvo 142E,21.4,4,121.0,109,2.780,1,1,2
"""

# Small runs: 500 kept draws per chain, so the default 200-draw
# warmup drop leaves 300 per chain.
FIT_KWARGS = dict(draws=500, chains=2, warmup=300, seed=11, chain_method="sequential")


def _mtcars() -> pd.DataFrame:
    return pd.read_csv(StringIO(_MTCARS), index_col="model")


@pytest.fixture()
def mtcars():
    return _mtcars()


@pytest.fixture()
def rng():
    return np.random.default_rng(42)


# ------------------------------------------------------------------ #
# Fitted models
# ------------------------------------------------------------------ #


@pytest.fixture(scope="session")
def normal_fit():
    return glm("mpg ~ hp + wt", _mtcars(), "normal").fit(**FIT_KWARGS)


@pytest.fixture(scope="session")
def student_t_fit():
    return glm("mpg ~ hp + wt", _mtcars(), "student_t").fit(**FIT_KWARGS)


@pytest.fixture(scope="session")
def bernoulli_fit():
    return glm("am ~ wt", _mtcars(), "bernoulli").fit(**FIT_KWARGS)


@pytest.fixture(scope="session")
def poisson_fit():
    return glm("carb ~ hp", _mtcars(), "poisson").fit(**FIT_KWARGS)


@pytest.fixture(scope="session")
def negative_binomial_fit():
    return glm("carb ~ hp", _mtcars(), "negative_binomial").fit(**FIT_KWARGS)


@pytest.fixture(
    scope="session",
    params=["normal", "student_t", "bernoulli", "poisson", "negative_binomial"],
)
def any_fit(request):
    return request.getfixturevalue(f"{request.param}_fit")


@pytest.fixture()
def fit_kwargs():
    return dict(FIT_KWARGS)
