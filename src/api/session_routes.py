"""
Stream session control API routes
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Union
import logging

from session.errors import (
    SessionBusyError,
    ProbeFailedError,
    InvalidFrameRateError,
    DirectoryCreateFailedError,
    DownloadFailedError,
)

logger = logging.getLogger(__name__)

# Request models
class ProbeRequest(BaseModel):
    url: str

class DownloadRequest(BaseModel):
    url: str
    frame_rate: Union[int, float, str]


def create_session_routes(session):
    """Create probe/download/cancel routes bound to the single stream session"""
    router = APIRouter(prefix="/api/session", tags=["session"])

    @router.get("/status")
    async def get_session_status():
        return session.status()

    @router.post("/probe")
    async def probe_stream(request: ProbeRequest):
        """Run a bounded probe and return the parsed stream metrics"""
        try:
            metrics = await session.probe(request.url)
        except SessionBusyError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except ProbeFailedError as e:
            raise HTTPException(status_code=502, detail={
                "message": str(e),
                "return_code": e.return_code,
                "log_tail": e.log_tail
            })
        return metrics.to_dict()

    @router.post("/download")
    async def start_download(request: DownloadRequest):
        """Start a download job; poll /status or /log for progress"""
        try:
            job = await session.start_download(request.url, request.frame_rate)
        except SessionBusyError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except InvalidFrameRateError as e:
            raise HTTPException(status_code=422, detail=str(e))
        except (DirectoryCreateFailedError, DownloadFailedError) as e:
            raise HTTPException(status_code=500, detail=str(e))
        return {"status": "started", "job": job.to_dict()}

    @router.post("/cancel")
    async def cancel_download():
        cancelled = session.cancel()
        return {"cancelled": cancelled, "state": session.state.value}

    @router.get("/log")
    async def get_session_log(since: int = 0):
        """Log lines appended since the given cursor"""
        lines, next_cursor = session.log.read_since(since)
        return {"lines": lines, "next_cursor": next_cursor}

    return router
