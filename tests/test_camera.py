import numpy as np

from posecam.camera import CameraSource, crop_zoom
from posecam.config import CameraConfig
from posecam.models import LensFacing


def test_crop_zoom_keeps_frame_size():
	frame = np.zeros((100, 200, 3), dtype=np.uint8)
	frame[40:60, 90:110] = 255
	out = crop_zoom(frame, 2.0)
	assert out.shape == frame.shape
	# the bright centre patch doubles in size
	assert out[50, 100].tolist() == [255, 255, 255]
	assert out[50, 85].tolist() == [255, 255, 255]
	assert out[5, 5].tolist() == [0, 0, 0]


def test_no_zoom_returns_frame_untouched():
	frame = np.ones((4, 4, 3), dtype=np.uint8)
	assert crop_zoom(frame, 1.0) is frame
	assert crop_zoom(None, 3.0) is None


def test_switch_and_zoom_without_opening_device():
	cam = CameraSource(CameraConfig(lens_facing="back", front_index=3, back_index=5))
	assert cam.get_status()["device_index"] == 5
	assert cam.set_zoom(25.0) == 10.0
	assert cam.set_zoom(0.2) == 1.0
	cam.set_zoom(2.0)
	assert cam.switch() == LensFacing.FRONT
	assert cam.zoom == 1.0
	assert cam.get_status() == {
		"lens_facing": "front",
		"device_index": 3,
		"zoom": 1.0,
		"open": False,
		"error": None,
	}
