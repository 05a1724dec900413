from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from posecam.config import AppConfig, get_config
from posecam.errors import ModelLoadError, wrap_model_error
from posecam.fps_meter import FpsMeter
from posecam.inference.base import InferenceEngine
from posecam.model_manager import ModelManager
from posecam.models import LensFacing, ModelType, SliderType, YoloTask
from posecam.pose.angles import elbow_angles_from_results, keypoint_count


logger = logging.getLogger(__name__)

Listener = Callable[["CameraInferenceController"], None]


@dataclass(frozen=True)
class SessionSnapshot:
	detection_count: int
	current_fps: float
	confidence_threshold: float
	iou_threshold: float
	num_items_threshold: int
	active_slider: str
	selected_model: str
	custom_model_url: Optional[str]
	task: str
	is_model_loading: bool
	model_path: Optional[str]
	loading_message: str
	download_progress: float
	current_zoom_level: float
	lens_facing: str
	is_front_camera: bool
	left_elbow_angle: Optional[float]
	right_elbow_angle: Optional[float]
	keypoint_count: Optional[int]

	def to_dict(self) -> Dict[str, Any]:
		out = asdict(self)
		# NaN is not valid JSON; undefined angles go out as null.
		for key in ("left_elbow_angle", "right_elbow_angle"):
			v = out[key]
			if v is not None and math.isnan(v):
				out[key] = None
		return out


@dataclass(frozen=True)
class _LoadTarget:
	label: str
	task: YoloTask
	resolve: Callable[[], Awaitable[Optional[str]]]


def _same_angle(a: Optional[float], b: Optional[float], eps: float) -> bool:
	if a is None or b is None:
		return a is None and b is None
	if math.isnan(a) or math.isnan(b):
		return math.isnan(a) and math.isnan(b)
	return abs(a - b) <= eps


class CameraInferenceController:
	"""
	Per-session state of the live camera inference view.

	All methods are called on the event loop thread: engine callbacks
	(results, metrics, zoom) and client commands alike. Listeners are notified
	only when a displayed value actually changes, and never after dispose().

	Model loading is single-flight: while a load is outstanding, further
	_load_model() callers await the same task, and change_model() is refused.
	"""

	def __init__(
		self,
		engine: InferenceEngine,
		model_manager: Optional[ModelManager] = None,
		cfg: Optional[AppConfig] = None,
		clock: Optional[Callable[[], float]] = None,
	) -> None:
		cfg = cfg or get_config()
		self._session_cfg = cfg.session
		self._engine = engine
		self._engine.on_zoom_changed = self.on_zoom_changed
		self._model_manager = model_manager or ModelManager(
			cfg.models,
			on_download_progress=self.on_download_progress,
			on_status_update=self.on_status_update,
		)
		self._listeners: List[Listener] = []

		# Elbow angles (degrees), pose task only
		self._left_elbow_angle: Optional[float] = None
		self._right_elbow_angle: Optional[float] = None
		self._keypoint_count: Optional[int] = None

		# Detection state
		self._detection_count = 0
		self._current_fps = 0.0
		self._fps_meter = FpsMeter(window_ms=cfg.session.fps_window_ms, clock=clock)

		# Threshold state
		self._confidence_threshold = float(cfg.inference.confidence_threshold)
		self._iou_threshold = float(cfg.inference.iou_threshold)
		self._num_items_threshold = int(cfg.inference.num_items_threshold)
		self._active_slider = SliderType.NONE

		# Model state
		self._selected_model = ModelType(cfg.models.default_model)
		self._custom_model_url: Optional[str] = None
		self._custom_model_task = YoloTask.DETECT
		self._is_model_loading = False
		self._model_path: Optional[str] = None
		self._loading_message = ""
		self._download_progress = 0.0

		# Camera state
		self._current_zoom_level = 1.0
		self._lens_facing = LensFacing(cfg.camera.lens_facing)

		self._is_disposed = False
		self._loading_task: Optional[asyncio.Future] = None

	# ------------------------------------------------------------------
	# Read-only state
	# ------------------------------------------------------------------
	@property
	def detection_count(self) -> int:
		return self._detection_count

	@property
	def current_fps(self) -> float:
		return self._current_fps

	@property
	def confidence_threshold(self) -> float:
		return self._confidence_threshold

	@property
	def iou_threshold(self) -> float:
		return self._iou_threshold

	@property
	def num_items_threshold(self) -> int:
		return self._num_items_threshold

	@property
	def active_slider(self) -> SliderType:
		return self._active_slider

	@property
	def selected_model(self) -> ModelType:
		return self._selected_model

	@property
	def custom_model_url(self) -> Optional[str]:
		return self._custom_model_url

	@property
	def active_task(self) -> YoloTask:
		if self._custom_model_url is not None:
			return self._custom_model_task
		return self._selected_model.task

	@property
	def is_model_loading(self) -> bool:
		return self._is_model_loading

	@property
	def model_path(self) -> Optional[str]:
		return self._model_path

	@property
	def loading_message(self) -> str:
		return self._loading_message

	@property
	def download_progress(self) -> float:
		return self._download_progress

	@property
	def current_zoom_level(self) -> float:
		return self._current_zoom_level

	@property
	def lens_facing(self) -> LensFacing:
		return self._lens_facing

	@property
	def is_front_camera(self) -> bool:
		return self._lens_facing == LensFacing.FRONT

	@property
	def left_elbow_angle(self) -> Optional[float]:
		return self._left_elbow_angle

	@property
	def right_elbow_angle(self) -> Optional[float]:
		return self._right_elbow_angle

	@property
	def keypoint_count(self) -> Optional[int]:
		return self._keypoint_count

	@property
	def is_disposed(self) -> bool:
		return self._is_disposed

	def snapshot(self) -> SessionSnapshot:
		return SessionSnapshot(
			detection_count=self._detection_count,
			current_fps=self._current_fps,
			confidence_threshold=self._confidence_threshold,
			iou_threshold=self._iou_threshold,
			num_items_threshold=self._num_items_threshold,
			active_slider=self._active_slider.value,
			selected_model=self._selected_model.value,
			custom_model_url=self._custom_model_url,
			task=self.active_task.value,
			is_model_loading=self._is_model_loading,
			model_path=self._model_path,
			loading_message=self._loading_message,
			download_progress=self._download_progress,
			current_zoom_level=self._current_zoom_level,
			lens_facing=self._lens_facing.value,
			is_front_camera=self.is_front_camera,
			left_elbow_angle=self._left_elbow_angle,
			right_elbow_angle=self._right_elbow_angle,
			keypoint_count=self._keypoint_count,
		)

	# ------------------------------------------------------------------
	# Listeners
	# ------------------------------------------------------------------
	def add_listener(self, listener: Listener) -> Callable[[], None]:
		"""
		Subscribe to state changes. Returns a callable that unsubscribes.
		"""
		self._listeners.append(listener)
		return lambda: self.remove_listener(listener)

	def remove_listener(self, listener: Listener) -> None:
		try:
			self._listeners.remove(listener)
		except ValueError:
			pass

	def _notify(self) -> None:
		if self._is_disposed:
			return
		for listener in list(self._listeners):
			try:
				listener(self)
			except Exception:
				logger.exception("Session listener failed")

	# ------------------------------------------------------------------
	# Lifecycle
	# ------------------------------------------------------------------
	async def initialize(self) -> None:
		await self._load_model()
		self._engine.set_thresholds(
			confidence_threshold=self._confidence_threshold,
			iou_threshold=self._iou_threshold,
			num_items_threshold=self._num_items_threshold,
		)

	def dispose(self) -> None:
		self._is_disposed = True
		self._listeners.clear()

	# ------------------------------------------------------------------
	# Engine callbacks
	# ------------------------------------------------------------------
	def on_detection_results(self, results: Optional[Sequence[Any]]) -> None:
		if self._is_disposed:
			return
		results = results or []
		changed = False

		if self.active_task == YoloTask.POSE:
			changed = self._update_elbow_angles(results)

		fps = self._fps_meter.tick()
		if fps is not None and abs(self._current_fps - fps) > self._session_cfg.fps_epsilon:
			self._current_fps = fps
			changed = True

		if self._detection_count != len(results):
			self._detection_count = len(results)
			changed = True

		if changed:
			self._notify()

	def on_performance_metrics(self, fps: float) -> None:
		if self._is_disposed:
			return
		if abs(self._current_fps - fps) > self._session_cfg.fps_epsilon:
			self._current_fps = float(fps)
			self._notify()

	def on_zoom_changed(self, zoom_level: float) -> None:
		if self._is_disposed:
			return
		if abs(self._current_zoom_level - zoom_level) > self._session_cfg.zoom_epsilon:
			self._current_zoom_level = float(zoom_level)
			self._notify()

	def on_download_progress(self, progress: float) -> None:
		if self._is_disposed:
			return
		self._download_progress = float(progress)
		self._notify()

	def on_status_update(self, message: str) -> None:
		if self._is_disposed:
			return
		self._loading_message = message
		self._notify()

	def _update_elbow_angles(self, results: Sequence[Any]) -> bool:
		angles = elbow_angles_from_results(results)
		count = keypoint_count(results)
		eps = self._session_cfg.angle_epsilon
		changed = (
			not _same_angle(angles.left, self._left_elbow_angle, eps)
			or not _same_angle(angles.right, self._right_elbow_angle, eps)
			or count != self._keypoint_count
		)
		self._left_elbow_angle = angles.left
		self._right_elbow_angle = angles.right
		self._keypoint_count = count
		return changed

	# ------------------------------------------------------------------
	# Client commands
	# ------------------------------------------------------------------
	def toggle_slider(self, slider: SliderType) -> None:
		if self._is_disposed:
			return
		self._active_slider = SliderType.NONE if self._active_slider == slider else slider
		self._notify()

	def update_slider_value(self, value: float) -> None:
		if self._is_disposed:
			return

		eps = self._session_cfg.threshold_epsilon
		changed = False
		if self._active_slider == SliderType.NUM_ITEMS:
			new_value = int(value)
			if self._num_items_threshold != new_value:
				self._num_items_threshold = new_value
				self._engine.set_num_items_threshold(new_value)
				changed = True
		elif self._active_slider == SliderType.CONFIDENCE:
			if abs(self._confidence_threshold - value) > eps:
				self._confidence_threshold = float(value)
				self._engine.set_confidence_threshold(self._confidence_threshold)
				changed = True
		elif self._active_slider == SliderType.IOU:
			if abs(self._iou_threshold - value) > eps:
				self._iou_threshold = float(value)
				self._engine.set_iou_threshold(self._iou_threshold)
				changed = True

		if changed:
			self._notify()

	def set_zoom_level(self, zoom_level: float) -> None:
		if self._is_disposed:
			return
		if abs(self._current_zoom_level - zoom_level) > self._session_cfg.zoom_epsilon:
			self._current_zoom_level = float(zoom_level)
			self._engine.set_zoom_level(self._current_zoom_level)
			self._notify()

	def flip_camera(self) -> None:
		if self._is_disposed:
			return
		self._lens_facing = LensFacing.BACK if self.is_front_camera else LensFacing.FRONT
		if self.is_front_camera:
			self._current_zoom_level = 1.0
		self._engine.switch_camera()
		self._notify()

	def set_lens_facing(self, facing: LensFacing) -> None:
		if self._is_disposed:
			return
		if self._lens_facing == facing:
			return
		self._lens_facing = facing
		self._engine.switch_camera()
		if self.is_front_camera:
			self._current_zoom_level = 1.0
		self._notify()

	async def change_model(self, model: ModelType) -> bool:
		"""
		Switch to a built-in model. Returns False if the switch was ignored.

		Load failures propagate as ModelLoadError after the state is updated.
		"""
		if self._is_disposed or self._is_model_loading:
			return False
		if model == self._selected_model and self._custom_model_url is None:
			return False
		self._selected_model = model
		self._custom_model_url = None
		await self._load_model()
		return True

	async def load_custom_model(self, url: str, task: YoloTask = YoloTask.DETECT) -> bool:
		"""
		Load a model artifact from a user supplied URL. Returns False if ignored.
		"""
		url = (url or "").strip()
		if self._is_disposed or self._is_model_loading or not url:
			return False
		self._custom_model_url = url
		self._custom_model_task = task
		await self._load_model()
		return True

	# ------------------------------------------------------------------
	# Model loading
	# ------------------------------------------------------------------
	def _current_target(self) -> _LoadTarget:
		url = self._custom_model_url
		if url is not None:
			return _LoadTarget(
				label=url.rsplit("/", 1)[-1] or url,
				task=self._custom_model_task,
				resolve=lambda: self._model_manager.get_custom_model_path(url),
			)
		model = self._selected_model
		return _LoadTarget(
			label=model.model_name,
			task=model.task,
			resolve=lambda: self._model_manager.get_model_path(model),
		)

	async def _load_model(self) -> None:
		if self._is_disposed:
			return
		task = self._loading_task
		if task is None:
			task = asyncio.ensure_future(self._perform_model_loading())
			self._loading_task = task
			task.add_done_callback(self._clear_loading_task)
		# shield: a cancelled caller must not cancel the load other callers share
		await asyncio.shield(task)

	def _clear_loading_task(self, task: asyncio.Future) -> None:
		if self._loading_task is task:
			self._loading_task = None
		if not task.cancelled():
			# mark retrieved; awaiting callers get it re-raised via shield
			task.exception()

	async def _perform_model_loading(self) -> None:
		if self._is_disposed:
			return

		target = self._current_target()
		self._is_model_loading = True
		self._loading_message = f"Loading {target.label} model..."
		self._download_progress = 0.0
		self._detection_count = 0
		self._current_fps = 0.0
		self._left_elbow_angle = None
		self._right_elbow_angle = None
		self._keypoint_count = None
		self._fps_meter.reset()
		self._notify()

		try:
			model_path = await target.resolve()
			if self._is_disposed:
				return
			if model_path is None:
				raise ModelLoadError(f"Failed to load {target.label} model", model=target.label, task=target.task.value)

			loop = asyncio.get_running_loop()
			await loop.run_in_executor(None, self._engine.set_model, model_path, target.task)
			if self._is_disposed:
				return

			self._model_path = model_path
			self._is_model_loading = False
			self._loading_message = ""
			self._download_progress = 0.0
			logger.info("Model %s ready (%s)", target.label, model_path)
			self._notify()
		except Exception as e:
			if self._is_disposed:
				return
			error = wrap_model_error(
				e,
				f"Failed to load model {target.label} for task {target.task.value}",
				model=target.label,
				task=target.task.value,
			)
			logger.warning(error.message)
			self._is_model_loading = False
			self._loading_message = f"Failed to load model: {error.message}"
			self._download_progress = 0.0
			self._notify()
			raise error from e
