from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from posecam.models import LensFacing, ModelType


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InferenceConfig:
	# Initial thresholds; clients adjust them live through the session sliders.
	confidence_threshold: float = 0.5
	iou_threshold: float = 0.45
	num_items_threshold: int = 30
	# Passed straight to ultralytics; empty means auto (cuda if available).
	device: str = ""
	image_size: int = 640


@dataclass(frozen=True)
class ModelsConfig:
	models_dir: str = str(Path("data") / "models")
	# Built-in models are fetched as <base_url>/<model_name>.pt when missing locally.
	base_url: str = "https://github.com/ultralytics/assets/releases/download/v8.3.0"
	default_model: str = ModelType.DETECT.value
	download_timeout_seconds: float = 60.0
	download_chunk_bytes: int = 256 * 1024


@dataclass(frozen=True)
class CameraConfig:
	lens_facing: str = LensFacing.FRONT.value
	# OpenCV device indices for each facing.
	front_index: int = 0
	back_index: int = 1
	width: Optional[int] = None
	height: Optional[int] = None


@dataclass(frozen=True)
class SessionConfig:
	fps_window_ms: float = 1000.0
	fps_epsilon: float = 0.1
	zoom_epsilon: float = 0.01
	threshold_epsilon: float = 0.01
	angle_epsilon: float = 0.01
	# Adds the raw keypoint count to the stats readout for pose models.
	show_keypoint_count: bool = False


@dataclass(frozen=True)
class AppConfig:
	inference: InferenceConfig = field(default_factory=InferenceConfig)
	models: ModelsConfig = field(default_factory=ModelsConfig)
	camera: CameraConfig = field(default_factory=CameraConfig)
	session: SessionConfig = field(default_factory=SessionConfig)


_CONFIG_PATH: Optional[Path] = None
_CONFIG_CACHE: Optional[AppConfig] = None


def _repo_root() -> Path:
	# posecam/config.py -> repo root is one level up.
	return Path(__file__).resolve().parents[1]


def get_default_config_path() -> Path:
	return _repo_root() / "config.json"


def set_config_path(path: str | Path) -> None:
	"""
	Override the config path (must be called before first get_config()).
	"""
	global _CONFIG_PATH
	global _CONFIG_CACHE
	_CONFIG_PATH = Path(path).expanduser().resolve()
	_CONFIG_CACHE = None


def _deep_get(d: Dict[str, Any], keys: list[str], default: Any = None) -> Any:
	cur: Any = d
	for k in keys:
		if not isinstance(cur, dict):
			return default
		cur = cur.get(k)
	return cur if cur is not None else default


def _as_int(v: Any, default: int) -> int:
	try:
		return int(v)
	except Exception:
		return int(default)


def _as_bool(v: Any, default: bool) -> bool:
	if isinstance(v, bool):
		return v
	if isinstance(v, (int, float)):
		return bool(v)
	if isinstance(v, str):
		return v.strip().lower() in ("1", "true", "yes", "on")
	return bool(default)


def _as_str(v: Any, default: str = "") -> str:
	return str(v) if v is not None else str(default)


def _as_float(v: Any, default: float) -> float:
	try:
		return float(v)
	except Exception:
		return float(default)


def _as_unit(v: Any, default: float) -> float:
	f = _as_float(v, default)
	return f if 0.0 <= f <= 1.0 else float(default)


def _as_choice(v: Any, choices: tuple[str, ...], default: str) -> str:
	s = _as_str(v, default).strip().lower()
	return s if s in choices else default


def _as_optional_int(v: Any) -> Optional[int]:
	if v is None:
		return None
	i = _as_int(v, 0)
	return i if i > 0 else None


def load_config(path: Optional[str | Path] = None) -> AppConfig:
	p = Path(path).expanduser().resolve() if path else (_CONFIG_PATH or get_default_config_path())
	if not p.exists():
		# Defaults-only config; app can still run.
		return AppConfig()
	try:
		raw = json.loads(p.read_text(encoding="utf-8"))
	except Exception as e:
		logger.warning("Ignoring malformed config %s: %r", p, e)
		return AppConfig()

	if not isinstance(raw, dict):
		return AppConfig()

	conf = _as_unit(_deep_get(raw, ["inference", "confidence_threshold"], 0.5), 0.5)
	iou = _as_unit(_deep_get(raw, ["inference", "iou_threshold"], 0.45), 0.45)
	num_items = _as_int(_deep_get(raw, ["inference", "num_items_threshold"], 30), 30)
	device = _as_str(_deep_get(raw, ["inference", "device"], ""), "").strip()
	image_size = _as_int(_deep_get(raw, ["inference", "image_size"], 640), 640)

	models_dir = _as_str(_deep_get(raw, ["models", "models_dir"], ModelsConfig.models_dir), ModelsConfig.models_dir)
	base_url = _as_str(_deep_get(raw, ["models", "base_url"], ModelsConfig.base_url), ModelsConfig.base_url).rstrip("/")
	default_model = _as_choice(
		_deep_get(raw, ["models", "default_model"], ModelType.DETECT.value),
		tuple(m.value for m in ModelType),
		ModelType.DETECT.value,
	)
	dl_timeout = _as_float(_deep_get(raw, ["models", "download_timeout_seconds"], 60.0), 60.0)
	dl_chunk = _as_int(_deep_get(raw, ["models", "download_chunk_bytes"], 256 * 1024), 256 * 1024)

	lens_facing = _as_choice(
		_deep_get(raw, ["camera", "lens_facing"], LensFacing.FRONT.value),
		tuple(f.value for f in LensFacing),
		LensFacing.FRONT.value,
	)
	# NOTE: do not use `or 0` here; device index 0 is valid.
	front_index = _as_int(_deep_get(raw, ["camera", "front_index"], 0), 0)
	back_index = _as_int(_deep_get(raw, ["camera", "back_index"], 1), 1)

	fps_window = _as_float(_deep_get(raw, ["session", "fps_window_ms"], 1000.0), 1000.0)
	fps_eps = _as_float(_deep_get(raw, ["session", "fps_epsilon"], 0.1), 0.1)
	zoom_eps = _as_float(_deep_get(raw, ["session", "zoom_epsilon"], 0.01), 0.01)
	thr_eps = _as_float(_deep_get(raw, ["session", "threshold_epsilon"], 0.01), 0.01)
	angle_eps = _as_float(_deep_get(raw, ["session", "angle_epsilon"], 0.01), 0.01)
	show_kp = _as_bool(_deep_get(raw, ["session", "show_keypoint_count"], False), False)

	return AppConfig(
		inference=InferenceConfig(
			confidence_threshold=conf,
			iou_threshold=iou,
			num_items_threshold=num_items if num_items > 0 else 30,
			device=device,
			image_size=image_size if image_size > 0 else 640,
		),
		models=ModelsConfig(
			models_dir=models_dir,
			base_url=base_url,
			default_model=default_model,
			download_timeout_seconds=dl_timeout if dl_timeout > 0.0 else 60.0,
			download_chunk_bytes=dl_chunk if dl_chunk > 0 else 256 * 1024,
		),
		camera=CameraConfig(
			lens_facing=lens_facing,
			front_index=front_index,
			back_index=back_index,
			width=_as_optional_int(_deep_get(raw, ["camera", "width"])),
			height=_as_optional_int(_deep_get(raw, ["camera", "height"])),
		),
		session=SessionConfig(
			fps_window_ms=fps_window if fps_window > 0.0 else 1000.0,
			fps_epsilon=max(0.0, fps_eps),
			zoom_epsilon=max(0.0, zoom_eps),
			threshold_epsilon=max(0.0, thr_eps),
			angle_epsilon=max(0.0, angle_eps),
			show_keypoint_count=show_kp,
		),
	)


def get_config() -> AppConfig:
	global _CONFIG_CACHE
	if _CONFIG_CACHE is None:
		_CONFIG_CACHE = load_config()
	return _CONFIG_CACHE
