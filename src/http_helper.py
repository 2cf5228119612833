# HTTP Helper for device probe connections
# Short-lived sessions for discovery HEAD requests against LAN devices

import aiohttp
import logging

logger = logging.getLogger(__name__)

def create_probe_session(timeout_seconds: float = 0.15) -> aiohttp.ClientSession:
    """
    Create aiohttp session for local device probes (always plain HTTP)
    The total timeout bounds each probe so a silent host costs at most timeout_seconds
    """
    connector = aiohttp.TCPConnector(
        limit_per_host=1,           # One probe per candidate address
        ssl=False,                  # Local devices use HTTP only
        force_close=True            # No keep-alive between probes
    )

    return aiohttp.ClientSession(
        connector=connector,
        timeout=aiohttp.ClientTimeout(total=timeout_seconds)
    )
