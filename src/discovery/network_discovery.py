"""
Network helpers for stream device discovery
"""

import socket
import asyncio
import aiohttp
import ipaddress
import logging
from typing import List, Optional, Tuple

from .models import NoLocalAddressError

from http_helper import create_probe_session

logger = logging.getLogger(__name__)

class NetworkDiscovery:
    """Local address detection and single-host HEAD probes"""

    def __init__(self, config: dict):
        self.config = config
        self.port = config.get('port', 80)
        self.accept_any_status = config.get('accept_any_status', False)

    def detect_local_ipv4(self) -> Optional[str]:
        """Pick the local IPv4 by opening a UDP socket towards a public address"""
        sock = None
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            sock.settimeout(0.2)
            # No packet is sent; connect() only selects the outgoing interface
            sock.connect(("8.8.8.8", 80))
            ip = sock.getsockname()[0]
        except OSError as e:
            logger.warning(f"Could not determine local IPv4 address: {e}")
            return None
        finally:
            if sock:
                sock.close()

        if not ip or ip.startswith("0."):
            return None
        return ip

    @staticmethod
    def subnet_prefix(local_ipv4: Optional[str]) -> str:
        """First three octets of a dotted-quad address"""
        if not local_ipv4:
            raise NoLocalAddressError("Local IPv4 address is unknown")
        try:
            address = ipaddress.IPv4Address(local_ipv4.strip())
        except ValueError:
            raise NoLocalAddressError(f"Not an IPv4 address: {local_ipv4!r}")
        return '.'.join(str(address).split('.')[:3])

    @staticmethod
    def candidate_addresses(prefix: str, host_range: Tuple[int, int]) -> List[str]:
        """Ascending candidate addresses prefix.lo .. prefix.hi"""
        low, high = int(host_range[0]), int(host_range[1])
        if low > high or low < 0 or high > 255:
            raise ValueError(f"Invalid host range: [{low}, {high}]")
        return [f"{prefix}.{host}" for host in range(low, high + 1)]

    def probe_url(self, ip: str) -> str:
        if self.port == 80:
            return f"http://{ip}/"
        return f"http://{ip}:{self.port}/"

    async def probe_host(self, ip: str, timeout_seconds: float) -> bool:
        """HEAD request against one candidate; True when it answers in time with an accepted status"""
        url = self.probe_url(ip)
        try:
            async with create_probe_session(timeout_seconds) as session:
                async with session.head(url, allow_redirects=False) as response:
                    if self.accept_any_status or 200 <= response.status < 300:
                        return True
                    logger.debug(f"HTTP {response.status} for {url}")
                    return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"Probe failed for {url}: {e!r}")
            return False
