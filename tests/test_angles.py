import math

import pytest

from conftest import pose_pairs
from posecam.pose.angles import angle_at, elbow_angles, elbow_angles_from_results, keypoint_count
from posecam.pose.types import ElbowAngles, Point


def test_colinear_points_give_straight_angle():
	assert angle_at(Point(0, 0), Point(1, 0), Point(2, 0)) == pytest.approx(180.0)


def test_right_angle():
	assert angle_at(Point(1, 0), Point(0, 0), Point(0, 1)) == pytest.approx(90.0, abs=1e-9)


def test_coincident_points_are_undefined_not_an_error():
	assert math.isnan(angle_at(Point(0, 0), Point(0, 0), Point(0, 0)))
	assert math.isnan(angle_at(Point(1, 1), Point(0, 0), Point(0, 0)))


def test_parallel_vectors_are_clamped_to_zero():
	a = angle_at(Point(3, 3), Point(0, 0), Point(1, 1))
	assert a == pytest.approx(0.0, abs=1e-6)
	assert 0.0 <= a <= 180.0


def test_elbow_angles_from_pairs():
	angles = elbow_angles(pose_pairs())
	assert angles.left == pytest.approx(90.0)
	assert angles.right == pytest.approx(180.0)


def test_flat_array_matches_pair_list():
	pairs = pose_pairs()
	flat = [v for kp in pairs for v in kp]
	assert len(flat) == 34
	from_flat = elbow_angles(flat)
	from_pairs = elbow_angles(pairs)
	assert from_flat.left == pytest.approx(from_pairs.left)
	assert from_flat.right == pytest.approx(from_pairs.right)


def test_flat_array_with_scores_matches_pair_list():
	flat = [v for kp in pose_pairs() for v in (kp[0], kp[1], 0.9)]
	assert len(flat) == 51
	angles = elbow_angles(flat)
	assert angles.left == pytest.approx(90.0)
	assert angles.right == pytest.approx(180.0)


def test_records_and_objects_match_pair_list():
	class Kp:
		def __init__(self, x, y):
			self.x = x
			self.y = y

	records = [{"x": x, "y": y, "score": 0.5} for x, y in pose_pairs()]
	objects = [Kp(x, y) for x, y in pose_pairs()]
	assert elbow_angles(records) == elbow_angles(pose_pairs())
	assert elbow_angles(objects) == elbow_angles(pose_pairs())


def test_missing_joints_yield_undefined():
	short = pose_pairs()[:8]
	angles = elbow_angles(short)
	assert angles.left is None
	assert angles.right is None


def test_missing_wrist_only_affects_that_arm():
	kps = pose_pairs()
	kps[9] = None
	angles = elbow_angles(kps)
	assert angles.left is None
	assert angles.right == pytest.approx(180.0)


def test_degenerate_arm_is_nan():
	kps = pose_pairs()
	kps[9] = list(kps[7])
	angles = elbow_angles(kps)
	assert math.isnan(angles.left)


@pytest.mark.parametrize(
	"results",
	[
		None,
		[],
		[None],
		[42],
		["abc"],
		[{"keypoints": "oops"}],
		[{"keypoints": [[True, False]] * 17}],
		[{"keypoints": [1.0] * 10}],
		[object()],
	],
)
def test_malformed_results_never_raise(results):
	assert elbow_angles_from_results(results) == ElbowAngles(None, None)


def test_first_detection_is_used():
	results = [
		{"keypoints": [{"x": x, "y": y} for x, y in pose_pairs()]},
		{"keypoints": []},
	]
	angles = elbow_angles_from_results(results)
	assert angles.left == pytest.approx(90.0)
	assert keypoint_count(results) == 17


def test_keypoint_count_for_flat_layout():
	flat = [v for kp in pose_pairs() for v in kp]
	assert keypoint_count([{"kpts": flat}]) == 17
	assert keypoint_count([]) is None


@pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
def test_non_finite_coordinate_is_undefined(bad):
	assert math.isnan(angle_at(Point(bad, 0), Point(0, 0), Point(0, 1)))
	assert math.isnan(angle_at(Point(1, 0), Point(0, 0), Point(0, bad)))


@pytest.mark.parametrize("bad", [math.nan, math.inf])
def test_non_finite_joint_counts_as_missing(bad):
	kps = pose_pairs()
	kps[7] = [bad, 1.0]
	angles = elbow_angles(kps)
	assert angles.left is None
	assert angles.right == pytest.approx(180.0)

	flat = [v for kp in pose_pairs() for v in kp]
	flat[2 * 9 + 1] = bad
	angles = elbow_angles(flat)
	assert angles.left is None
	assert angles.right == pytest.approx(180.0)
