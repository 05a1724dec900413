from __future__ import annotations

import logging
import math
from typing import Any, Optional, Sequence

from posecam.pose.keypoints import find_keypoints, parse_keypoints, point_at
from posecam.pose.types import ElbowAngles, KeypointSet, Point


logger = logging.getLogger(__name__)

# COCO indices: (shoulder, elbow, wrist)
LEFT_ARM = (5, 7, 9)
RIGHT_ARM = (6, 8, 10)


def angle_at(a: Point, b: Point, c: Point) -> float:
	"""
	Angle ABC at point B in degrees, in [0, 180].

	Returns NaN when either limb vector has zero length or a coordinate is
	not finite.
	"""
	v1x, v1y = a.x - b.x, a.y - b.y
	v2x, v2y = c.x - b.x, c.y - b.y
	mag1 = math.hypot(v1x, v1y)
	mag2 = math.hypot(v2x, v2y)
	if mag1 == 0 or mag2 == 0:
		return float("nan")
	cosang = (v1x * v2x + v1y * v2y) / (mag1 * mag2)
	if math.isnan(cosang):
		return float("nan")
	cosang = max(-1.0, min(1.0, cosang))
	return math.degrees(math.acos(cosang))


def _arm_angle(keypoints: KeypointSet, joints: Sequence[int]) -> Optional[float]:
	shoulder, elbow, wrist = (point_at(keypoints, i) for i in joints)
	if shoulder is None or elbow is None or wrist is None:
		return None
	return angle_at(shoulder, elbow, wrist)


def elbow_angles(collection: Any) -> ElbowAngles:
	keypoints = collection if isinstance(collection, KeypointSet) else parse_keypoints(collection)
	if keypoints is None:
		return ElbowAngles()
	return ElbowAngles(
		left=_arm_angle(keypoints, LEFT_ARM),
		right=_arm_angle(keypoints, RIGHT_ARM),
	)


def elbow_angles_from_results(results: Optional[Sequence[Any]]) -> ElbowAngles:
	"""
	Elbow angles of the first detected person.

	Never raises: anything unexpected in the result shape yields undefined angles.
	"""
	try:
		if not results:
			return ElbowAngles()
		kps = find_keypoints(results[0])
		if not kps:
			return ElbowAngles()
		return elbow_angles(kps)
	except Exception as e:
		logger.debug("Ignoring malformed pose result: %r", e)
		return ElbowAngles()


def keypoint_count(results: Optional[Sequence[Any]]) -> Optional[int]:
	"""
	Number of joints on the first detection, for the debug readout.
	"""
	try:
		if not results:
			return None
		keypoints = parse_keypoints(find_keypoints(results[0]))
		return len(keypoints) if keypoints is not None else None
	except Exception:
		return None
