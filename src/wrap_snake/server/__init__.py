"""HTTP and WebSocket front end for single-player games."""
