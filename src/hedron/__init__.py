"""Hedron: build, validate and project convex and star polytopes.

Hedron stores polytopes as rank-graded incidence structures, combines
them with product operators, builds uniform polytopes from Coxeter
diagrams via Wythoff's construction, and turns the result into polygon
meshes for a renderer.

Example usage::

    from hedron import from_diagram, build_mesh

    cube = from_diagram("x4o3o")
    mesh = build_mesh(cube)
"""

import logging

from hedron.config import DEFAULT_OPTIONS, GeometryOptions
from hedron.construction import (
    CoxeterDiagram,
    duocomb,
    duoprism,
    duopyramid,
    duotegum,
    dyad,
    from_diagram,
    hypercube,
    nullitope,
    orthoplex,
    parse_diagram,
    point,
    polygon,
    prism,
    pyramid,
    simplex,
    tegum,
    wythoff,
)
from hedron.errors import (
    BrokenDiamond,
    Degenerate,
    DegenerateSeed,
    Disconnected,
    IncidenceMismatch,
    InfiniteGroup,
    InvalidDiagram,
    InvalidOperand,
    PolytopeError,
    TooLarge,
)
from hedron.io import load_polytope, save_polytope
from hedron.model import AbstractPolytope, ConcretePolytope, ElementStore
from hedron.rendering import (
    Mesh,
    PolygonBatch,
    ViewState,
    build_mesh,
    project,
    render_mpl,
    wireframe,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AbstractPolytope",
    "BrokenDiamond",
    "ConcretePolytope",
    "CoxeterDiagram",
    "DEFAULT_OPTIONS",
    "Degenerate",
    "DegenerateSeed",
    "Disconnected",
    "ElementStore",
    "GeometryOptions",
    "IncidenceMismatch",
    "InfiniteGroup",
    "InvalidDiagram",
    "InvalidOperand",
    "Mesh",
    "PolygonBatch",
    "PolytopeError",
    "TooLarge",
    "ViewState",
    "build_mesh",
    "duocomb",
    "duoprism",
    "duopyramid",
    "duotegum",
    "dyad",
    "from_diagram",
    "hypercube",
    "load_polytope",
    "nullitope",
    "orthoplex",
    "parse_diagram",
    "point",
    "polygon",
    "prism",
    "project",
    "pyramid",
    "render_mpl",
    "save_polytope",
    "simplex",
    "tegum",
    "wireframe",
    "wythoff",
]
