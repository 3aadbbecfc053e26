import faulthandler
faulthandler.enable()

from quart import Quart, websocket, request, jsonify
import argparse
import json
import os
from typing import Any

from src.packages.app_config import AppConfig
from src.packages.memory_channel import CapabilityService
from src.packages.page_size import describe_host
from src.utils.logger import get_logger
from src.utils.memory import shutdown_reclaimer
try:
    from websockets.exceptions import ConnectionClosed
except Exception:
    ConnectionClosed = Exception

# === Configuration ===
CONFIG = AppConfig(os.getenv("APP_CONFIG", "app_config.toml")).load_toml_config()
CHANNEL_CONFIG: dict[str, Any] = CONFIG["memory_channel"]
CHANNEL_NAME: str = CHANNEL_CONFIG["name"]

logger = get_logger("app", log_name="memory_channel")

app = Quart(__name__)


def _describe_platform():
    return describe_host(CHANNEL_CONFIG.get("api_level"))


service = CapabilityService(
    describe=_describe_platform,
    threshold=int(CHANNEL_CONFIG["api_level_threshold"]),
)


def _unknown_channel(channel: str) -> dict[str, Any]:
    return {"status": "unknown_channel", "channel": channel}


# Close background reclaimer at shutdown (Quart lifespan)
if hasattr(app, "after_serving"):
    @app.after_serving
    async def _shutdown_cleanup():
        shutdown_reclaimer()


# Health endpoint (used by systemd)
@app.get("/_healthz")
async def _healthz():
    return "ok", 200


# =========================
# Memory channel (HTTP)
# =========================
@app.route("/channel/<path:channel>", methods=["POST"])
async def channel_call(channel: str):
    if channel != CHANNEL_NAME:
        return jsonify(_unknown_channel(channel)), 404
    data = await request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get("method"), str):
        return jsonify({"status": "bad_request"}), 400
    result = service.handle(data["method"])
    return jsonify(result.to_payload()), 200


# =========================
# Memory channel (WebSocket)
# =========================
@app.websocket("/ws_channel/<path:channel>")
async def ws_channel(channel: str):
    if channel != CHANNEL_NAME:
        await websocket.accept()
        await websocket.send(json.dumps(_unknown_channel(channel)))
        return
    try:
        while True:
            raw = await websocket.receive()
            try:
                data = json.loads(raw)
            except (TypeError, ValueError):
                data = None
            if not isinstance(data, dict) or not isinstance(data.get("method"), str):
                await websocket.send(json.dumps({"status": "bad_request"}))
                continue
            payload = service.handle(data["method"]).to_payload()
            if "id" in data:
                payload["id"] = data["id"]
            await websocket.send(json.dumps(payload))
    except ConnectionClosed:
        logger.info("websocket closed on channel %s", channel)


# =========================
# Entry
# =========================
if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run memory capability service")
    parser.add_argument("--port", type=int, default=5000, help="Port for the web server")
    parser.add_argument("--use-uvicorn", action="store_true", help="Run with uvicorn instead of built-in server")
    args = parser.parse_args()

    if args.use_uvicorn:
        import uvicorn
        uvicorn.run(
            "app:app",
            host="0.0.0.0",
            port=args.port,
            reload=False,
            lifespan="on",
            timeout_keep_alive=2,
            timeout_graceful_shutdown=2,
            workers=1,
        )
    else:
        app.run(port=args.port)
