"""HTTP and WebSocket routers. Each module exposes `router`."""
