"""FastAPI request/response bridge over the mdnotes gateway."""
from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()

from mdnotes import __version__
from mdnotes.config import get_store_config
from mdnotes.db.database import Database
from mdnotes.errors import MdNotesError
from mdnotes.gateway import Gateway
from mdnotes.logging_config import configure_logging

logger = logging.getLogger(__name__)

# Service instances, owned by the lifespan
_db: Optional[Database] = None
_gateway: Optional[Gateway] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store on startup, close it on shutdown."""
    global _db, _gateway

    configure_logging()
    cfg = get_store_config()
    db = Database(path=cfg.db_path, timeout=cfg.timeout)
    try:
        db.init()
    except MdNotesError as e:
        logger.critical(f"Initialization failed: {e}")
        db.close()
        raise

    _db = db
    _gateway = Gateway.from_database(db, timeout=cfg.timeout)
    logger.info(f"Server started - DB: {db.path}")
    try:
        yield
    finally:
        logger.info("Server shutting down")
        _gateway = None
        _db = None
        db.close()


app = FastAPI(
    title="mdnotes API",
    description="Request/response bridge for the local note store",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response Models
class InvokeRequest(BaseModel):
    payload: Any = None


class EnvelopeResponse(BaseModel):
    success: bool
    data: Any = None
    error: Optional[str] = None
    kind: Optional[str] = None


# API Routes
@app.get("/api/status")
async def get_status():
    """Get system status."""
    return {
        "status": "ok",
        "version": __version__,
        "database": str(_db.path) if _db else None,
    }


@app.get("/api/operations")
async def list_operations():
    """List the operation catalogue."""
    if not _gateway:
        raise HTTPException(status_code=503, detail="Database not initialized")
    return {"operations": _gateway.operations()}


@app.post("/api/invoke/{operation}", response_model=EnvelopeResponse)
async def invoke(operation: str, request: Optional[InvokeRequest] = None):
    """Deliver a request to the gateway and return its envelope."""
    if not _gateway:
        raise HTTPException(status_code=503, detail="Database not initialized")
    payload = request.payload if request else None
    envelope = await _gateway.invoke(operation, payload)
    return envelope.to_dict()
