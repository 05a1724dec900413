"""
Keypoint lookup over detection results whose shape is not fixed.

The engine's pose output has moved around between versions and platforms
(direct `keypoints` lists, nested `xy`/`data` tensors, flat arrays, lists of
dicts, point objects). Everything here fails soft: a shape we do not
recognise resolves to None, never to an exception.
"""

from __future__ import annotations

import math
import numbers
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional

from posecam.pose.types import COCO17_JOINTS, KeypointLayout, KeypointSet, Point


DIRECT_FIELDS = ("keypoints", "kpts", "pose")
NESTED_KEYS = ("points", "xy", "data", "keypoints", "kpts", "joints", "normalizedKeypoints")
POINT_FIELDS = ("point", "pt", "xy")


def _is_number(v: Any) -> bool:
	# bool is an Integral; a True/False coordinate is never meaningful.
	return isinstance(v, numbers.Real) and not isinstance(v, bool)


def _get(obj: Any, name: str) -> Any:
	if obj is None:
		return None
	if isinstance(obj, Mapping):
		return obj.get(name)
	try:
		return getattr(obj, name, None)
	except Exception:
		return None


def _as_sequence(value: Any) -> Optional[List[Any]]:
	"""
	Return value as a list if it is list-like (including tensors / ndarrays), else None.
	"""
	if value is None or isinstance(value, (str, bytes, Mapping)):
		return None
	if isinstance(value, (list, tuple)):
		return list(value)
	tolist = getattr(value, "tolist", None)
	if callable(tolist):
		try:
			out = tolist()
		except Exception:
			return None
		return list(out) if isinstance(out, (list, tuple)) else None
	return None


def _is_probe_target(value: Any) -> bool:
	return value is not None and not isinstance(value, (str, bytes, numbers.Number))


def _unwrap(seq: List[Any]) -> List[Any]:
	# Per-person results keep the batch axis: [[kp0, kp1, ...], ...]. First person wins.
	inner = _as_sequence(seq[0]) if seq else None
	if not inner:
		return seq
	if all(_is_number(v) for v in inner):
		# a flat per-person array, or just the first [x, y] pair
		return inner if len(inner) >= 2 * COCO17_JOINTS else seq
	first = next((v for v in inner if v is not None), None)
	if first is None:
		return seq
	if isinstance(first, Mapping) or _as_sequence(first) is not None or _parse_object(first) is not None:
		return inner
	return seq


def _probe_nested(container: Any) -> Optional[List[Any]]:
	for key in NESTED_KEYS:
		seq = _as_sequence(_get(container, key))
		if seq:
			return _unwrap(seq)
	return None


def find_keypoints(detection: Any) -> Optional[List[Any]]:
	"""
	Locate the keypoint collection on a single detection.

	Order: `keypoints`, `kpts`, `pose`; a container found there is probed for
	NESTED_KEYS; finally a mapping detection is probed for NESTED_KEYS itself.
	Returns the first non-empty match or None.
	"""
	if detection is None:
		return None
	for name in DIRECT_FIELDS:
		value = _get(detection, name)
		seq = _as_sequence(value)
		if seq:
			return _unwrap(seq)
		if _is_probe_target(value) and seq is None:
			nested = _probe_nested(value)
			if nested:
				return nested
	if isinstance(detection, Mapping):
		return _probe_nested(detection)
	return None


def _parse_pair(item: Any) -> Optional[Point]:
	seq = _as_sequence(item)
	if not seq or len(seq) < 2:
		return None
	x, y = seq[0], seq[1]
	if not _is_number(x) or not _is_number(y):
		return None
	score = float(seq[2]) if len(seq) >= 3 and _is_number(seq[2]) else None
	return Point(float(x), float(y), score)


def _parse_record(item: Any) -> Optional[Point]:
	if not isinstance(item, Mapping):
		return None
	x, y = item.get("x"), item.get("y")
	if not _is_number(x) or not _is_number(y):
		return None
	score = item.get("score", item.get("confidence"))
	return Point(float(x), float(y), float(score) if _is_number(score) else None)


def _parse_object(item: Any) -> Optional[Point]:
	if not _is_probe_target(item) or isinstance(item, Mapping) or _as_sequence(item) is not None:
		return None
	x, y = _get(item, "x"), _get(item, "y")
	if _is_number(x) and _is_number(y):
		score = _get(item, "score")
		if not _is_number(score):
			score = _get(item, "confidence")
		return Point(float(x), float(y), float(score) if _is_number(score) else None)
	for name in POINT_FIELDS:
		inner = _get(item, name)
		if inner is None:
			continue
		pt = _parse_pair(inner) or _parse_record(inner) or _parse_object(inner)
		if pt is not None:
			return pt
	return None


_ITEM_PARSERS: Dict[KeypointLayout, Callable[[Any], Optional[Point]]] = {
	KeypointLayout.PAIRS: _parse_pair,
	KeypointLayout.RECORDS: _parse_record,
	KeypointLayout.OBJECTS: _parse_object,
}


def parse_keypoints(collection: Any) -> Optional[KeypointSet]:
	"""
	Recognise the layout of a keypoint collection, or return None.
	"""
	seq = _as_sequence(collection)
	if not seq:
		return None
	if all(_is_number(v) for v in seq):
		if len(seq) % COCO17_JOINTS != 0:
			return None
		stride = len(seq) // COCO17_JOINTS
		if stride < 2:
			return None
		return KeypointSet(raw=seq, layout=KeypointLayout.FLAT, stride=stride)

	first = next((item for item in seq if item is not None), None)
	if first is None:
		return None
	for layout, parser in _ITEM_PARSERS.items():
		if parser(first) is not None:
			return KeypointSet(raw=seq, layout=layout)
	return None


def _finite(pt: Optional[Point]) -> Optional[Point]:
	# NaN/inf coordinates count as a missing joint.
	if pt is None or not (math.isfinite(pt.x) and math.isfinite(pt.y)):
		return None
	return pt


def point_at(keypoints: KeypointSet, index: int) -> Optional[Point]:
	if index < 0:
		return None
	raw = keypoints.raw
	if keypoints.layout == KeypointLayout.FLAT:
		base = index * keypoints.stride
		if base + 1 >= len(raw):
			return None
		score = float(raw[base + 2]) if keypoints.stride >= 3 else None
		return _finite(Point(float(raw[base]), float(raw[base + 1]), score))
	if index >= len(raw) or raw[index] is None:
		return None
	return _finite(_ITEM_PARSERS[keypoints.layout](raw[index]))


def keypoint_xy(collection: Any, index: int) -> Optional[Point]:
	"""
	Look up joint `index` in a raw keypoint collection of any supported layout.
	"""
	keypoints = collection if isinstance(collection, KeypointSet) else parse_keypoints(collection)
	if keypoints is None:
		return None
	return point_at(keypoints, index)
