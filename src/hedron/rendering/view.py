"""Camera state for turning 3D mesh positions into screen coordinates."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np


@dataclass
class ViewState:
    """Camera state for 3D-to-2D projection.

    Attributes:
        rotation: 3x3 rotation matrix; its rows are the camera axes.
        zoom: Magnification factor.
        centre: 3D point about which to centre the view.
        perspective: Perspective strength (0 = orthographic).
        view_distance: Distance from camera to scene centre.
    """

    rotation: np.ndarray = field(
        default_factory=lambda: np.eye(3, dtype=float)
    )
    zoom: float = 1.0
    centre: np.ndarray = field(
        default_factory=lambda: np.zeros(3, dtype=float)
    )
    perspective: float = 0.0
    view_distance: float = 10.0

    def __post_init__(self) -> None:
        if self.zoom <= 0:
            raise ValueError(f"zoom must be positive, got {self.zoom}")
        if self.view_distance <= 0:
            raise ValueError(
                f"view_distance must be positive, got {self.view_distance}"
            )
        if self.perspective < 0:
            raise ValueError(
                f"perspective must be non-negative, got {self.perspective}"
            )

    @classmethod
    def fitted(cls, positions: np.ndarray, **kwargs: object) -> ViewState:
        """A view centred on the bounding box of *positions*."""
        pts = np.asarray(positions, dtype=float)
        centre = (pts.min(axis=0) + pts.max(axis=0)) / 2.0 if len(pts) else np.zeros(3)
        return cls(centre=centre, **kwargs)

    def project(self, coords: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Project 3D coordinates to 2D with depth information.

        The eye sits at ``[0, 0, view_distance]`` looking down -z.

        Args:
            coords: Array of shape ``(n, 3)``.

        Returns:
            Tuple of ``(xy, depth)``: ``(n, 2)`` screen coordinates and
            ``(n,)`` depths (larger = closer to the viewer).
        """
        coords = np.asarray(coords, dtype=float).reshape(-1, 3)
        rotated = (coords - self.centre) @ self.rotation.T
        depth = rotated[:, 2]

        if self.perspective > 0:
            d = self.view_distance - depth * self.perspective
            scale = self.view_distance / np.maximum(d, 1e-12)
            xy = rotated[:, :2] * scale[:, np.newaxis] * self.zoom
        else:
            xy = rotated[:, :2] * self.zoom
        return xy, depth

    def look_along(
        self,
        direction: np.ndarray | list[float] | tuple[float, ...],
        *,
        up: np.ndarray | list[float] | tuple[float, ...] = (0.0, 1.0, 0.0),
    ) -> ViewState:
        """Set the rotation so the camera looks along *direction*.

        Returns ``self`` so calls can be chained::

            view = ViewState().look_along([1, 1, 1])

        Raises:
            ValueError: If *direction* is zero-length or *up* is
                parallel to *direction*.
        """
        d = np.asarray(direction, dtype=float)
        u = np.asarray(up, dtype=float)

        d_len = np.linalg.norm(d)
        if d_len < 1e-12:
            raise ValueError("direction must be non-zero")
        fwd = d / d_len

        right = np.cross(u, fwd)
        right_len = np.linalg.norm(right)
        if right_len < 1e-12:
            if tuple(float(x) for x in up) != (0.0, 1.0, 0.0):
                raise ValueError(
                    "up vector is parallel to the viewing direction"
                )
            right = np.cross(np.array([0.0, 0.0, 1.0]), fwd)
            right_len = np.linalg.norm(right)
        right /= right_len

        self.rotation = np.array([right, np.cross(fwd, right), fwd])
        return self
