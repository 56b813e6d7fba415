"""
Budglio Companion - Main Entry Point

A local FastAPI application that keeps encryption off the front end.
Runs on http://127.0.0.1:18422 and handles family chat encryption and
encrypted backup export/import.
"""

import os
import json
import logging
from typing import Optional
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request, UploadFile, File, HTTPException
from fastapi.responses import Response
from fastapi.middleware.cors import CORSMiddleware

from config import config, VERSION
from ledgercrypt import MessageCipher, DataCipher, FamilyKeyDeriver, InvalidEncryptedPayload
from backup import build_backup, backup_filename, export_backup, restore_backup, InvalidBackupFormat
from chat import seal_outgoing

__version__ = VERSION

logger = logging.getLogger(__name__)


# Global state
class AppState:
    """Application state container."""
    message_cipher: Optional[MessageCipher] = None
    data_cipher: Optional[DataCipher] = None

    def __init__(self):
        self.processing_logs: list[dict] = []

    def add_log(self, level: str, message: str, details: str = ""):
        """Add a log entry."""
        self.processing_logs.append({
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "message": message,
            "details": details,
        })
        # Keep only last 100 logs
        if len(self.processing_logs) > 100:
            self.processing_logs = self.processing_logs[-100:]

    def clear_sensitive_data(self):
        """Clear cached family keys from memory."""
        if self.message_cipher:
            self.message_cipher.deriver.clear_cache()


app_state = AppState()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    app_state.message_cipher = MessageCipher(FamilyKeyDeriver(config.CHAT_SALT, config.KEY_CACHE_SIZE))
    app_state.data_cipher = DataCipher(config.EXPORT_SECRET)

    app_state.add_log("info", "Budglio Companion started", f"Server running on http://{config.HOST}:{config.PORT}")

    yield

    # Shutdown - clear sensitive data
    app_state.clear_sensitive_data()
    app_state.add_log("info", "Budglio Companion stopped", "Cached keys cleared from memory")


# Create FastAPI app
app = FastAPI(
    title="Budglio Companion",
    description="Local encryption service for family chat and backups",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware (allow the local front end)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Must be False when allow_origins is "*"
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)


async def read_json(request: Request) -> dict:
    """Parse a JSON object body or fail with 400."""
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(status_code=400, detail="Request body must be JSON")
    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return data


def require_family_id(data: dict) -> str:
    family_id = data.get("family_id", "")
    if not family_id or not isinstance(family_id, str):
        raise HTTPException(status_code=400, detail="family_id required")
    return family_id


# ============================================================================
# Family Chat API
# ============================================================================

@app.post("/api/chat/encrypt")
async def encrypt_message(request: Request):
    """Encrypt a single chat message."""
    data = await read_json(request)
    family_id = require_family_id(data)
    message = data.get("message", "")

    if not isinstance(message, str):
        raise HTTPException(status_code=400, detail="message must be a string")

    return {"message": app_state.message_cipher.encrypt(message, family_id)}


@app.post("/api/chat/decrypt")
async def decrypt_messages(request: Request):
    """Decrypt one message or a whole history. Legacy plaintext is returned unchanged."""
    data = await read_json(request)
    family_id = require_family_id(data)

    if "messages" in data:
        messages = data["messages"]
        if not isinstance(messages, list) or not all(isinstance(m, str) for m in messages):
            raise HTTPException(status_code=400, detail="messages must be a list of strings")
        return {"messages": app_state.message_cipher.decrypt_many(messages, family_id)}

    message = data.get("message", "")
    if not isinstance(message, str):
        raise HTTPException(status_code=400, detail="message must be a string")
    return {"message": app_state.message_cipher.decrypt(message, family_id)}


@app.post("/api/chat/send")
async def prepare_chat_message(request: Request):
    """Build the encrypted row for an outgoing chat message."""
    data = await read_json(request)
    family_id = require_family_id(data)

    try:
        sealed = seal_outgoing(
            data.get("message", ""),
            family_id,
            data.get("user_id", ""),
            reply_to_id=data.get("reply_to_id"),
            cipher=app_state.message_cipher,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return sealed.to_row()


# ============================================================================
# Backup API
# ============================================================================

@app.post("/api/backup/export")
async def export_data(request: Request):
    """Encrypt the posted application state and return it as a download."""
    data = await read_json(request)

    if not isinstance(data.get("expenses"), list):
        raise HTTPException(status_code=400, detail="expenses must be a list")
    for key in ("budgets", "subscriptions", "purchasedThemes", "purchasedCards"):
        if data.get(key) is not None and not isinstance(data[key], list):
            raise HTTPException(status_code=400, detail=f"{key} must be a list")
    for key in ("settings", "gamification"):
        if data.get(key) is not None and not isinstance(data[key], dict):
            raise HTTPException(status_code=400, detail=f"{key} must be an object")

    document = build_backup(
        data["expenses"],
        budgets=data.get("budgets"),
        subscriptions=data.get("subscriptions"),
        gamification=data.get("gamification"),
        settings=data.get("settings"),
        purchased_themes=data.get("purchasedThemes"),
        purchased_cards=data.get("purchasedCards"),
    )
    blob = export_backup(document, cipher=app_state.data_cipher)
    filename = backup_filename()

    app_state.add_log("info", "Backup exported", f"{len(document['expenses'])} expense(s) in {filename}")

    return Response(
        content=blob,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/api/backup/import")
async def import_data(file: UploadFile = File(...)):
    """Decrypt and validate an uploaded backup file."""
    content = await file.read()

    try:
        restored = restore_backup(content.decode("utf-8"), cipher=app_state.data_cipher)
    except UnicodeDecodeError:
        app_state.add_log("warning", "Import failed", "File is not text")
        raise HTTPException(status_code=400, detail=InvalidEncryptedPayload.DEFAULT_MESSAGE)
    except (InvalidEncryptedPayload, InvalidBackupFormat) as e:
        logger.warning(f"Backup import rejected: {e}")
        app_state.add_log("warning", "Import failed", str(e))
        raise HTTPException(status_code=400, detail=str(e))

    app_state.add_log("info", "Backup imported", f"{len(restored.expenses)} expense(s) from {file.filename or 'upload'}")

    return {
        "success": True,
        "message": "Data restored",
        "data": restored.to_dict(),
    }


# ============================================================================
# Logs API
# ============================================================================

@app.get("/api/logs")
async def get_logs():
    """Get processing logs."""
    return {"logs": app_state.processing_logs}


@app.delete("/api/logs")
async def clear_logs():
    """Clear processing logs."""
    app_state.processing_logs = []
    return {"success": True, "message": "Logs cleared"}


# ============================================================================
# Version API
# ============================================================================

@app.get("/api/version")
async def get_version():
    """Get current version information."""
    return {
        "version": __version__,
        "key_cache": app_state.message_cipher.deriver.cache_info()._asdict() if app_state.message_cipher else None,
    }


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # In Docker, bind to 0.0.0.0 to accept external connections
    in_docker = os.path.exists('/.dockerenv') or os.environ.get('DOCKER_CONTAINER', False)
    host = "0.0.0.0" if in_docker else config.HOST

    uvicorn.run(
        "main:app",
        host=host,
        port=config.PORT,
        log_level=config.LOG_LEVEL.lower(),
    )
