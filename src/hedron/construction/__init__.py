"""Polytope construction: elementary shapes, products and Wythoff's construction."""

from hedron.construction.coxeter import (
    CoxeterDiagram,
    check_finite,
    generate_group,
    parse_diagram,
)
from hedron.construction.products import (
    compound,
    ditope,
    duocomb,
    duoprism,
    duopyramid,
    duotegum,
    hosotope,
    multicomb,
    multiprism,
    multipyramid,
    multitegum,
    omnitruncate,
    prism,
    pyramid,
    tegum,
)
from hedron.construction.shapes import (
    abstract_dyad,
    abstract_hypercube,
    abstract_nullitope,
    abstract_orthoplex,
    abstract_point,
    abstract_polygon,
    abstract_simplex,
    dyad,
    hypercube,
    nullitope,
    orthoplex,
    point,
    polygon,
    simplex,
)
from hedron.construction.wythoff import check_seed, from_diagram, wythoff

__all__ = [
    "CoxeterDiagram",
    "abstract_dyad",
    "abstract_hypercube",
    "abstract_nullitope",
    "abstract_orthoplex",
    "abstract_point",
    "abstract_polygon",
    "abstract_simplex",
    "check_finite",
    "check_seed",
    "compound",
    "ditope",
    "duocomb",
    "duoprism",
    "duopyramid",
    "duotegum",
    "dyad",
    "from_diagram",
    "generate_group",
    "hosotope",
    "hypercube",
    "multicomb",
    "multiprism",
    "multipyramid",
    "multitegum",
    "nullitope",
    "omnitruncate",
    "orthoplex",
    "parse_diagram",
    "point",
    "polygon",
    "prism",
    "pyramid",
    "simplex",
    "tegum",
    "wythoff",
]
