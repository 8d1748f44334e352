"""4x4 world transforms parsed from flattened column-major arrays.

Flattened 16-float transforms only exist at the persistence boundary. They are
parsed into :class:`Transform` immediately so that projection and joining code
never indexes raw arrays.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from arplan.exceptions import RecordFormatError


@dataclass(frozen=True, eq=False)
class Transform:
    """Rigid world transform of an anchor.

    ``matrix[row, col]``; columns 0-2 are the local X/Y/Z axes, column 3 the
    translation. The flattened layout is column-major, so translation sits at
    flattened indices 12/13/14 and the local X axis at 0/1/2.
    """

    matrix: np.ndarray = field(default_factory=lambda: np.eye(4))

    def __post_init__(self) -> None:
        arr = np.array(self.matrix, dtype=float)
        if arr.shape != (4, 4):
            raise RecordFormatError("transform must be a 4x4 matrix", {"shape": str(arr.shape)})
        arr.flags.writeable = False
        object.__setattr__(self, "matrix", arr)

    @classmethod
    def from_flat(cls, values: Sequence[float]) -> "Transform":
        if len(values) != 16:
            raise RecordFormatError(
                "flattened transform must have 16 values",
                {"length": str(len(values))},
            )
        return cls(np.asarray(values, dtype=float).reshape(4, 4).T)

    @classmethod
    def from_axes(
        cls,
        translation: Sequence[float],
        x_axis: Sequence[float] = (1.0, 0.0, 0.0),
        y_axis: Sequence[float] = (0.0, 1.0, 0.0),
        z_axis: Sequence[float] = (0.0, 0.0, 1.0),
    ) -> "Transform":
        matrix = np.eye(4)
        matrix[:3, 0] = x_axis
        matrix[:3, 1] = y_axis
        matrix[:3, 2] = z_axis
        matrix[:3, 3] = translation
        return cls(matrix)

    def to_flat(self) -> list[float]:
        return [float(v) for v in self.matrix.T.reshape(-1)]

    @property
    def translation(self) -> np.ndarray:
        return self.matrix[:3, 3]

    @property
    def x_axis(self) -> np.ndarray:
        return self.matrix[:3, 0]

    @property
    def y_axis(self) -> np.ndarray:
        return self.matrix[:3, 1]

    @property
    def z_axis(self) -> np.ndarray:
        return self.matrix[:3, 2]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Transform):
            return NotImplemented
        return bool(np.array_equal(self.matrix, other.matrix))

    def __hash__(self) -> int:
        return hash(self.matrix.tobytes())


def normalized(vector: Sequence[float], *, min_length: float = 0.0) -> np.ndarray | None:
    """Return the unit vector, or None when its length is not above ``min_length``."""
    arr = np.asarray(vector, dtype=float)
    length = float(np.linalg.norm(arr))
    if not np.isfinite(length) or length <= min_length:
        return None
    return arr / length


__all__ = ["Transform", "normalized"]
