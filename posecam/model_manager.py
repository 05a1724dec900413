from __future__ import annotations

import asyncio
import hashlib
import logging
import os
import urllib.parse
import urllib.request
from pathlib import Path
from typing import Callable, Optional

from posecam.config import ModelsConfig, get_config
from posecam.models import ModelType


logger = logging.getLogger(__name__)

CUSTOM_URL_SCHEMES = ("http", "https", "file")


class ModelManager:
	"""
	Resolves a model identifier to a local artifact path, downloading it on first use.

	Progress (0.0..1.0) and status messages are reported through the callbacks,
	always on the event loop thread. Failures resolve to None; callers decide how
	to surface them.
	"""

	def __init__(
		self,
		cfg: Optional[ModelsConfig] = None,
		on_download_progress: Optional[Callable[[float], None]] = None,
		on_status_update: Optional[Callable[[str], None]] = None,
	) -> None:
		self._cfg = cfg or get_config().models
		self._on_progress: Callable[[float], None] = on_download_progress or (lambda _p: None)
		self._on_status: Callable[[str], None] = on_status_update or (lambda _msg: None)

	@property
	def models_dir(self) -> Path:
		return Path(self._cfg.models_dir).expanduser()

	async def get_model_path(self, model: ModelType) -> Optional[str]:
		filename = f"{model.model_name}.pt"
		local = self.models_dir / filename
		if local.exists():
			return str(local)
		url = f"{self._cfg.base_url.rstrip('/')}/{filename}"
		return await self._download(url, local, label=model.model_name)

	async def get_custom_model_path(self, url: str) -> Optional[str]:
		"""
		Resolve a user-supplied model URL. Downloads are cached per URL.
		"""
		url = (url or "").strip()
		parsed = urllib.parse.urlparse(url)
		filename = Path(urllib.parse.unquote(parsed.path)).name
		if parsed.scheme.lower() not in CUSTOM_URL_SCHEMES or not filename:
			self._on_status(f"Invalid model URL: {url}")
			return None
		digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:10]
		local = self.models_dir / "custom" / f"{digest}_{filename}"
		if local.exists():
			return str(local)
		return await self._download(url, local, label=filename)

	async def _download(self, url: str, dest: Path, label: str) -> Optional[str]:
		loop = asyncio.get_running_loop()

		def report(progress: float) -> None:
			loop.call_soon_threadsafe(self._on_progress, progress)

		self._on_status(f"Downloading {label} model...")
		self._on_progress(0.0)
		logger.info("Downloading %s from %s", label, url)
		try:
			await loop.run_in_executor(None, self._fetch, url, dest, report)
		except Exception as e:
			logger.warning("Model download failed for %s: %r", url, e)
			self._on_status(f"Download failed: {e}")
			return None
		self._on_progress(1.0)
		self._on_status(f"{label} model downloaded")
		return str(dest)

	def _fetch(self, url: str, dest: Path, report: Callable[[float], None]) -> None:
		dest.parent.mkdir(parents=True, exist_ok=True)
		part = dest.with_name(dest.name + ".part")
		chunk_bytes = int(self._cfg.download_chunk_bytes)
		try:
			with urllib.request.urlopen(url, timeout=float(self._cfg.download_timeout_seconds)) as resp:
				total = int(resp.headers.get("Content-Length") or 0)
				done = 0
				with open(part, "wb") as fh:
					while True:
						chunk = resp.read(chunk_bytes)
						if not chunk:
							break
						fh.write(chunk)
						done += len(chunk)
						if total > 0:
							report(min(1.0, done / total))
			if done == 0:
				raise IOError(f"empty response from {url}")
			os.replace(part, dest)
		finally:
			if part.exists():
				part.unlink()
