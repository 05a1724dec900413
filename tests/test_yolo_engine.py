import numpy as np
import pytest

pytest.importorskip("ultralytics")

from posecam.camera import CameraSource  # noqa: E402
from posecam.config import CameraConfig, InferenceConfig  # noqa: E402
from posecam.inference.yolo_engine import YoloInferenceEngine  # noqa: E402
from posecam.models import YoloTask  # noqa: E402
from posecam.pose.angles import elbow_angles_from_results  # noqa: E402


class Boxes:
	def __init__(self, rows):
		self.cls = np.array([r[0] for r in rows], dtype=float)
		self.conf = np.array([r[1] for r in rows], dtype=float)
		self.xyxy = np.array([r[2] for r in rows], dtype=float)

	def __len__(self):
		return len(self.cls)


class Keypoints:
	def __init__(self, data):
		self.data = np.array(data, dtype=float)


class Result:
	def __init__(self, boxes=None, keypoints=None, probs=None):
		self.names = {0: "person", 1: "dog"}
		self.boxes = boxes
		self.keypoints = keypoints
		self.probs = probs
		self.obb = None


class FakeYOLO:
	instances = []

	def __init__(self, path, task=None):
		self.path = path
		self.task = task
		self.result = Result()
		self.kwargs = None
		FakeYOLO.instances.append(self)

	def predict(self, frame, **kwargs):
		self.kwargs = kwargs
		return [self.result]


@pytest.fixture
def engine():
	eng = YoloInferenceEngine(InferenceConfig(), CameraSource(CameraConfig()))
	eng._YOLO = FakeYOLO
	return eng


def test_thresholds_map_to_predict_arguments(engine):
	engine.set_model("yolo11n.pt", YoloTask.DETECT)
	engine.set_thresholds(0.25, 0.6, 5)
	engine.set_num_items_threshold(0)
	engine.infer(np.zeros((8, 8, 3), dtype=np.uint8))
	kwargs = FakeYOLO.instances[-1].kwargs
	assert kwargs["conf"] == 0.25
	assert kwargs["iou"] == 0.6
	assert kwargs["max_det"] == 1
	assert FakeYOLO.instances[-1].task == "detect"


def test_no_model_means_no_detections(engine):
	assert engine.infer(np.zeros((8, 8, 3), dtype=np.uint8)) == []


def test_pose_detections_carry_keypoint_records(engine):
	engine.set_model("yolo11n-pose.pt", YoloTask.POSE)
	kps = [[float(i), float(i), 0.9] for i in range(17)]
	kps[5], kps[7], kps[9] = [0, 0, 0.9], [0, 10, 0.9], [10, 10, 0.9]
	model = FakeYOLO.instances[-1]
	model.result = Result(boxes=Boxes([(0, 0.8, [1, 2, 3, 4])]), keypoints=Keypoints([kps]))

	dets = engine.infer(np.zeros((8, 8, 3), dtype=np.uint8))
	assert len(dets) == 1
	assert dets[0]["class"] == "person"
	assert dets[0]["bbox"] == [1.0, 2.0, 3.0, 4.0]
	assert dets[0]["keypoints"][7] == {"x": 0.0, "y": 10.0, "score": 0.9}
	assert elbow_angles_from_results(dets).left == pytest.approx(90.0)


def test_zoom_clamping_is_reported_back(engine):
	seen = []
	engine.on_zoom_changed = seen.append
	engine.set_zoom_level(2.0)
	engine.set_zoom_level(50.0)
	assert seen == [10.0]
