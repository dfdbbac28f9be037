"""Static matplotlib preview: :func:`render_mpl` entry point."""

from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.axes import Axes
from matplotlib.collections import LineCollection, PolyCollection
from matplotlib.colors import to_rgba
from matplotlib.figure import Figure

from hedron.config import GeometryOptions
from hedron.model.concrete import ConcretePolytope
from hedron.rendering.mesh import project, to_3d, wireframe
from hedron.rendering.view import ViewState

Colour = str | tuple[float, ...]


def _draw(
    ax: Axes,
    polytope: ConcretePolytope,
    view: ViewState,
    *,
    projection: str,
    face_colour: Colour,
    edge_colour: Colour,
    face_alpha: float,
    line_width: float,
    options: GeometryOptions | None,
) -> None:
    """Paint faces back to front, then the edges on top."""
    positions = to_3d(polytope.vertices, projection)
    xy, depth = view.project(positions)

    loops: list[np.ndarray] = []
    for batch in project(polytope, options=options):
        loops.extend(batch.polygons)
    if loops:
        order = np.argsort([depth[loop].mean() for loop in loops])
        face_rgba = to_rgba(face_colour, alpha=face_alpha)
        ax.add_collection(PolyCollection(
            [xy[loops[k]] for k in order],
            closed=True,
            facecolors=[face_rgba] * len(loops),
            edgecolors="none",
        ))

    edges = wireframe(polytope)
    if len(edges):
        ax.add_collection(LineCollection(
            xy[edges], colors=[to_rgba(edge_colour)], linewidths=line_width,
        ))
    if len(xy):
        ax.scatter(xy[:, 0], xy[:, 1], s=line_width * 6, c=[to_rgba(edge_colour)])
        pad = max(float(np.abs(xy).max()) * 1.15, 1e-3)
        ax.set_xlim(-pad, pad)
        ax.set_ylim(-pad, pad)
    ax.set_aspect("equal")
    ax.set_axis_off()


def render_mpl(
    polytope: ConcretePolytope,
    output: str | Path | None = None,
    *,
    ax: Axes | None = None,
    view: ViewState | None = None,
    projection: str = "orthogonal",
    figsize: tuple[float, float] = (5.0, 5.0),
    dpi: int = 150,
    background: Colour = "white",
    face_colour: Colour = "tab:blue",
    edge_colour: Colour = "black",
    face_alpha: float = 0.5,
    line_width: float = 1.0,
    show: bool | None = None,
    options: GeometryOptions | None = None,
) -> Figure:
    """Render a polytope as a static matplotlib figure.

    Uses a depth-sorted painter's algorithm over the polygons returned
    by :func:`~hedron.rendering.mesh.project`, with edges drawn last.

    Example usage::

        cube = hypercube(3)
        render_mpl(cube, "cube.png", view=ViewState().look_along([1, 2, 3]))

    Args:
        polytope: The polytope to draw.
        output: Optional file path to save the figure.  Ignored when
            *ax* is provided.
        ax: Optional axes to draw into.  The caller then owns the
            figure; *output*, *figsize*, *dpi*, *background* and *show*
            are ignored.
        view: Camera; a view centred on the polytope when ``None``.
        projection: How dimensions above 3 are reduced, see
            :func:`~hedron.rendering.mesh.to_3d`.
        figsize: Figure size in inches ``(width, height)``.
        dpi: Resolution for raster output formats.
        background: Background colour.
        face_colour: Fill colour of faces.
        edge_colour: Colour of edges and vertices.
        face_alpha: Opacity of faces.
        line_width: Edge line width in points.
        show: Whether to call ``plt.show()``.  Defaults to ``True``
            when *output* is ``None``.
        options: Geometry options.

    Returns:
        The matplotlib :class:`~matplotlib.figure.Figure` object.
    """
    if view is None:
        view = ViewState.fitted(to_3d(polytope.vertices, projection))
    style = dict(
        projection=projection,
        face_colour=face_colour,
        edge_colour=edge_colour,
        face_alpha=face_alpha,
        line_width=line_width,
        options=options,
    )

    if ax is not None:
        fig = ax.get_figure()
        if not isinstance(fig, Figure):
            raise ValueError("ax is not attached to a Figure")
        _draw(ax, polytope, view, **style)
        return fig

    fig, ax = plt.subplots(1, 1, figsize=figsize, dpi=dpi)
    fig.set_facecolor(to_rgba(background))
    _draw(ax, polytope, view, **style)
    fig.tight_layout()

    if output is not None:
        fig.savefig(str(output), dpi=dpi, bbox_inches="tight")

    if show is None:
        show = output is None

    if show:
        plt.show()
    else:
        plt.close(fig)

    return fig
