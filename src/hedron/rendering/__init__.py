"""Rendering: mesh projection for external renderers and a matplotlib preview."""

from hedron.rendering.mesh import (
    Mesh,
    PolygonBatch,
    build_mesh,
    project,
    tessellate_face,
    wireframe,
)
from hedron.rendering.static import render_mpl
from hedron.rendering.view import ViewState

__all__ = [
    "Mesh",
    "PolygonBatch",
    "ViewState",
    "build_mesh",
    "project",
    "render_mpl",
    "tessellate_face",
    "wireframe",
]
