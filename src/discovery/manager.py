"""
Discovery manager: first-responder subnet scan for a streaming device
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from .models import DiscoveryResult
from .network_discovery import NetworkDiscovery

logger = logging.getLogger(__name__)

# prober(address, timeout_seconds) -> True on hit
Prober = Callable[[str, float], Awaitable[bool]]

class DeviceDiscovery:
    """Scans a narrow host range of the local /24 and returns the first responder"""

    def __init__(self, config: Dict, prober: Optional[Prober] = None):
        self.config = config
        self.network = NetworkDiscovery(config)
        self.prober = prober or self.network.probe_host
        self.local_ip = config.get('local_ip')
        self.host_range = tuple(config.get('host_range', [100, 150]))
        self.probe_timeout_ms = config.get('probe_timeout_ms', 150)
        self.parallel_probes = max(1, int(config.get('parallel_probes', 1)))
        self.last_result: Optional[DiscoveryResult] = None

    async def scan(
        self,
        local_ipv4: Optional[str] = None,
        host_range: Optional[Tuple[int, int]] = None,
        per_probe_timeout_ms: Optional[int] = None,
    ) -> DiscoveryResult:
        """
        Probe prefix.lo .. prefix.hi in ascending order and stop at the first hit.

        Raises NoLocalAddressError when no local address is given, configured or
        detectable. Raises ValueError for an invalid host range or a
        non-positive timeout.
        """
        local_ipv4 = local_ipv4 or self.local_ip or self.network.detect_local_ipv4()
        prefix = self.network.subnet_prefix(local_ipv4)
        if host_range is None:
            host_range = self.host_range
        if len(host_range) != 2:
            raise ValueError(f"Host range needs [low, high], got {list(host_range)}")
        candidates = self.network.candidate_addresses(prefix, host_range)
        timeout_ms = self.probe_timeout_ms if per_probe_timeout_ms is None else per_probe_timeout_ms
        if timeout_ms <= 0:
            raise ValueError(f"Probe timeout must be positive, got {timeout_ms}ms")
        timeout_seconds = timeout_ms / 1000.0

        logger.info(f"[SEARCH] Scanning {prefix}.{host_range[0]}-{host_range[1]} "
                    f"({len(candidates)} hosts, {timeout_ms}ms per probe)")
        start_time = time.time()

        if self.parallel_probes > 1:
            address, probed = await self._scan_windows(candidates, timeout_seconds)
        else:
            address, probed = await self._scan_sequential(candidates, timeout_seconds)

        duration = time.time() - start_time
        if address:
            result = DiscoveryResult(address, probed, duration)
            logger.info(f"[OK] Device found at {address} after {len(probed)} probes in {duration:.1f}s")
        else:
            result = DiscoveryResult.not_found(probed, duration)
            logger.info(f"No device answered in {prefix}.{host_range[0]}-{host_range[1]} ({duration:.1f}s)")

        self.last_result = result
        return result

    async def _scan_sequential(self, candidates: List[str], timeout_seconds: float) -> Tuple[Optional[str], List[str]]:
        probed = []
        for ip in candidates:
            probed.append(ip)
            if await self._probe(ip, timeout_seconds):
                return ip, probed
        return None, probed

    async def _scan_windows(self, candidates: List[str], timeout_seconds: float) -> Tuple[Optional[str], List[str]]:
        """Probe fixed-size ascending windows concurrently; lowest hit in the first window with a hit wins"""
        probed = []
        for i in range(0, len(candidates), self.parallel_probes):
            window = candidates[i:i + self.parallel_probes]
            probed.extend(window)
            hits = await asyncio.gather(*(self._probe(ip, timeout_seconds) for ip in window))
            for ip, hit in zip(window, hits):
                if hit:
                    return ip, probed
        return None, probed

    async def _probe(self, ip: str, timeout_seconds: float) -> bool:
        # Guard against probers that ignore their own timeout
        try:
            return bool(await asyncio.wait_for(self.prober(ip, timeout_seconds), timeout_seconds + 1.0))
        except asyncio.TimeoutError:
            logger.debug(f"Probe for {ip} exceeded its timeout")
            return False
