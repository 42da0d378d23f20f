"""Session log API: POST /logs stores a finished session, GET /logs lists them by score."""
import logging
import sys
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

PROJ_ROOT = Path(__file__).resolve().parents[1]
if str(PROJ_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJ_ROOT))
from config import load_server_config
from sync.log_store import LogStore

logger = logging.getLogger(__name__)

# Load local `.env` (keys/config), if present.
load_dotenv(PROJ_ROOT / ".env")

SERVER_CFG = load_server_config()
_store_path = Path(SERVER_CFG.store_path)
if not _store_path.is_absolute():
    _store_path = PROJ_ROOT / _store_path
LOG_STORE = LogStore(str(_store_path))

app = FastAPI()


@app.post("/logs")
async def create_log(request: Request):
    try:
        body = await request.json()
    except Exception:
        return JSONResponse({"success": False, "error": "invalid JSON body"}, status_code=400)
    try:
        log = LOG_STORE.save(body)
    except ValueError as e:
        return JSONResponse({"success": False, "error": str(e)}, status_code=400)
    except Exception as e:
        logger.error("Error saving log: %s", e)
        return JSONResponse({"success": False, "error": "Could not save log"}, status_code=500)
    return JSONResponse({"success": True, "log": log}, status_code=201)


@app.get("/logs")
async def list_logs():
    try:
        logs = LOG_STORE.list_logs()
    except Exception as e:
        logger.error("Error fetching logs: %s", e)
        return JSONResponse({"success": False, "error": "Could not fetch logs"}, status_code=500)
    return JSONResponse({"success": True, "logs": logs})


if __name__ == "__main__":
    import argparse
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    ap = argparse.ArgumentParser()
    ap.add_argument("--host", default=SERVER_CFG.host)
    ap.add_argument("--port", type=int, default=SERVER_CFG.port)
    args = ap.parse_args()
    logger.info("Log store: %s", LOG_STORE.path)
    uvicorn.run(app, host=args.host, port=args.port)
