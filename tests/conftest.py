"""Shared test fixtures for hedron."""

import matplotlib

matplotlib.use("Agg")

import pytest  # noqa: E402

from hedron.construction.shapes import (  # noqa: E402
    abstract_hypercube,
    abstract_simplex,
    hypercube,
    polygon,
    simplex,
)


@pytest.fixture
def triangle():
    """A unit-edge equilateral triangle."""
    return polygon(3)


@pytest.fixture
def square():
    """A unit-edge square centred at the origin."""
    return hypercube(2)


@pytest.fixture
def tetrahedron():
    """A unit-edge regular tetrahedron centred at the origin."""
    return simplex(3)


@pytest.fixture
def cube():
    """The unit cube ``[-1/2, 1/2]^3``."""
    return hypercube(3)


@pytest.fixture
def abstract_cube():
    """The incidence structure of the cube."""
    return abstract_hypercube(3)


@pytest.fixture
def abstract_tetrahedron():
    """The incidence structure of the tetrahedron."""
    return abstract_simplex(3)
