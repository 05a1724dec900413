from __future__ import annotations

from typing import Optional


class PosecamError(Exception):
	"""Base class for errors raised by posecam."""


class ModelLoadError(PosecamError):
	"""
	A model could not be resolved or handed to the inference engine.

	`message` is human readable and safe to show to users.
	"""

	def __init__(self, message: str, model: Optional[str] = None, task: Optional[str] = None) -> None:
		super().__init__(message)
		self.message = message
		self.model = model
		self.task = task


def wrap_model_error(error: BaseException, context: str, model: Optional[str] = None, task: Optional[str] = None) -> ModelLoadError:
	"""
	Attach load context to an arbitrary failure.

	The result reads "<context>: <detail>"; model/task already set on a
	wrapped ModelLoadError win over the ones passed here.
	"""
	if isinstance(error, ModelLoadError):
		return ModelLoadError(
			f"{context}: {error.message}",
			model=error.model or model,
			task=error.task or task,
		)
	detail = str(error) or type(error).__name__
	return ModelLoadError(f"{context}: {detail}", model=model, task=task)
