from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence


# Assumed joint count for flat keypoint arrays (COCO-17).
COCO17_JOINTS = 17


@dataclass(frozen=True)
class Point:
	"""
	A single 2D keypoint in image or normalized coordinates.
	"""

	x: float
	y: float
	score: Optional[float] = None  # confidence/visibility, when the layout carries one


class KeypointLayout(str, Enum):
	FLAT = "flat"
	PAIRS = "pairs"
	RECORDS = "records"
	OBJECTS = "objects"


@dataclass(frozen=True)
class KeypointSet:
	"""
	A keypoint collection together with the layout it was recognised as.

	- FLAT: [x0, y0, (s0,) x1, y1, ...]; stride inferred from len / 17.
	- PAIRS: [[x, y(, s)], ...]
	- RECORDS: [{"x": .., "y": ..}, ...]
	- OBJECTS: [obj.x / obj.y, or obj.point / obj.pt / obj.xy exposing them]
	"""

	raw: Sequence[Any]
	layout: KeypointLayout
	stride: int = 0

	def __len__(self) -> int:
		if self.layout == KeypointLayout.FLAT:
			return len(self.raw) // self.stride if self.stride else 0
		return len(self.raw)


@dataclass(frozen=True)
class ElbowAngles:
	"""
	Elbow angles in degrees.

	None means a joint was missing; NaN means a degenerate (zero-length) limb vector.
	"""

	left: Optional[float] = None
	right: Optional[float] = None


def is_undefined(angle: Optional[float]) -> bool:
	return angle is None or math.isnan(angle)
