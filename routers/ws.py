"""WebSocket endpoint and ConnectionManager. Route: /ws."""
import asyncio
import json
import logging
from typing import Any, Dict, Set

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from posecam.controller import CameraInferenceController

router = APIRouter(tags=["ws"])
logger = logging.getLogger(__name__)


class ConnectionManager:
	def __init__(self) -> None:
		self._clients: Set[WebSocket] = set()
		self._lock = asyncio.Lock()

	async def connect(self, websocket: WebSocket) -> None:
		await websocket.accept()
		async with self._lock:
			self._clients.add(websocket)

	async def disconnect(self, websocket: WebSocket) -> None:
		async with self._lock:
			self._clients.discard(websocket)

	async def broadcast_json(self, message: Dict[str, Any]) -> None:
		payload = json.dumps(message, separators=(",", ":"))
		async with self._lock:
			if not self._clients:
				return
			send_tasks = []
			for ws in list(self._clients):
				send_tasks.append(self._send(ws, payload))
			await asyncio.gather(*send_tasks, return_exceptions=True)

	@staticmethod
	async def _send(ws: WebSocket, payload: str) -> None:
		try:
			await ws.send_text(payload)
		except Exception:
			try:
				await ws.close()
			except Exception:
				pass


manager = ConnectionManager()


def session_message(ctrl: CameraInferenceController) -> Dict[str, Any]:
	return {"type": "session", **ctrl.snapshot().to_dict()}


def broadcast_session(ctrl: CameraInferenceController) -> None:
	"""
	Session listener: push the new state to all WebSocket clients.
	Fire-and-forget; safe to call from non-async code.
	"""
	try:
		asyncio.get_running_loop()
	except RuntimeError:
		# No running loop; nothing to push to.
		return
	asyncio.ensure_future(manager.broadcast_json(session_message(ctrl)))


@router.websocket("/ws")
async def ws_endpoint(websocket: WebSocket):
	await manager.connect(websocket)
	try:
		ctrl = getattr(websocket.app.state.state, "controller", None)
		if ctrl is not None and not ctrl.is_disposed:
			await websocket.send_text(json.dumps(session_message(ctrl), separators=(",", ":")))
		while True:
			await websocket.receive_text()
	except WebSocketDisconnect:
		pass
	except Exception:
		logger.debug("WebSocket closed with error", exc_info=True)
	finally:
		await manager.disconnect(websocket)
