"""
Reference implementation of the spreadsheet endpoint contract using FastAPI.

One row per key holds the stored JSON payload and its last-write timestamp.
``GET /?action=read&key=...`` returns the payload or ``null``; ``POST /`` with
``{key, data}`` upserts the row.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..core.interfaces import DocumentClient
from ..core.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class EndpointWrite(BaseModel):
    key: str = Field(..., min_length=1)
    data: Any = None


class SpreadsheetEndpointAPI:
    """Keyed row storage speaking the spreadsheet endpoint protocol."""

    def __init__(self, client: DocumentClient, sheet: str = "sheet"):
        self._client = client
        self._sheet = sheet

        self.app = FastAPI(
            title="Scorebook Spreadsheet Endpoint",
            description="Keyed JSON rows for the spreadsheet endpoint backend",
            version="1.0.0",
        )

        # Browsers post to the endpoint from other origins.
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

        self._setup_routes()

    def _setup_routes(self):
        """Setup endpoint routes."""

        @self.app.get("/")
        def read_row(action: str = Query(...), key: str = Query(..., min_length=1),
                     t: Optional[str] = None):
            """Return the stored payload for key, or null."""
            if action != "read":
                raise HTTPException(status_code=400, detail=f"Unsupported action: {action}")
            try:
                data = self._client.read_one(self._sheet, key)
            except PersistenceError as e:
                logger.error("Endpoint read failed: %s", e)
                raise HTTPException(status_code=500, detail="Read failed")
            return JSONResponse(content=data)

        @self.app.post("/", response_model=Dict[str, str])
        def write_row(payload: EndpointWrite):
            """Upsert the row for key."""
            try:
                self._client.write_one(self._sheet, payload.key, payload.data)
            except PersistenceError as e:
                logger.error("Endpoint write failed: %s", e)
                raise HTTPException(status_code=500, detail="Write failed")
            return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
