"""
System health and device discovery API routes
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime, timezone
import logging

from discovery.models import NoLocalAddressError
from session.commands import build_stream_url

logger = logging.getLogger(__name__)

# Request models
class ScanRequest(BaseModel):
    local_ip: Optional[str] = None
    host_low: Optional[int] = None
    host_high: Optional[int] = None
    timeout_ms: Optional[int] = None

# Response models
class ScanResponse(BaseModel):
    found: bool
    address: Optional[str]
    stream_url: Optional[str]
    hosts_probed: List[str]
    duration_seconds: float

def create_system_routes(discovery, session, config):
    """Create health and discovery routes"""
    router = APIRouter(prefix="/api", tags=["system"])
    stream_path = config.get('session', {}).get('stream_path', 'stream')

    @router.get("/system/health")
    async def system_health():
        """System health check"""
        last_scan = discovery.last_result
        return {
            "status": "healthy",
            "session_state": session.state.value,
            "last_scan": {
                "found": last_scan.found,
                "address": last_scan.address
            } if last_scan else None,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    @router.post("/discovery/scan", response_model=ScanResponse)
    async def scan_for_device(request: ScanRequest):
        """Scan the local subnet for the first device answering HTTP HEAD"""
        host_range = None
        if request.host_low is not None or request.host_high is not None:
            low, high = discovery.host_range
            host_range = (
                request.host_low if request.host_low is not None else low,
                request.host_high if request.host_high is not None else high,
            )
        try:
            result = await discovery.scan(request.local_ip, host_range, request.timeout_ms)
        except NoLocalAddressError as e:
            logger.error(f"Discovery aborted: {e}")
            raise HTTPException(status_code=400, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        return ScanResponse(
            found=result.found,
            address=result.address,
            stream_url=build_stream_url(result.address, stream_path) if result.found else None,
            hosts_probed=result.hosts_probed,
            duration_seconds=result.duration_seconds
        )

    return router
