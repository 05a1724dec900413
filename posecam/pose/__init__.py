"""
Pose keypoint utilities.

Keypoint lookup tolerant of the engine's variant result shapes, plus the joint
angle math used for the elbow readout.
"""

from posecam.pose.angles import angle_at, elbow_angles, elbow_angles_from_results, keypoint_count
from posecam.pose.keypoints import find_keypoints, keypoint_xy, parse_keypoints
from posecam.pose.types import ElbowAngles, KeypointLayout, KeypointSet, Point, is_undefined

__all__ = [
	"ElbowAngles",
	"KeypointLayout",
	"KeypointSet",
	"Point",
	"angle_at",
	"elbow_angles",
	"elbow_angles_from_results",
	"find_keypoints",
	"is_undefined",
	"keypoint_count",
	"keypoint_xy",
	"parse_keypoints",
]
