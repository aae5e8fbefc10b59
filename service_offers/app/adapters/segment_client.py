"""
User segment service client for the Offers service.
"""

import httpx
from typing import Dict, Any, Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.errors import UpstreamUnavailable
from shared.circuit_breaker import CircuitBreaker, CircuitBreakerOpenException
from ..offers.models import SegmentResolution


class SegmentClient:
    """Client for the external user segment service.

    Lookups never raise: every failure degrades to an unresolved segment so
    the cart is priced without an offer.
    """

    def __init__(self, segment_service_url: str, timeout: float = 2.0,
                 failure_threshold: int = 5, recovery_timeout: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.segment_service_url = segment_service_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.metrics = metrics
        self.logger = get_logger("offers.segment_client")
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=failure_threshold,
            recovery_timeout=recovery_timeout,
            name="segment_service"
        )

    async def _fetch_segment(self, user_id: int) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(
                    f"{self.segment_service_url}/user_segment",
                    params={"user_id": user_id}
                )
            except httpx.HTTPError as e:
                raise UpstreamUnavailable(
                    "segment_service",
                    type(e).__name__,
                    details={"http_error": str(e)}
                ) from e

            if response.status_code != 200:
                raise UpstreamUnavailable(
                    "segment_service",
                    f"unexpected status {response.status_code}",
                    details={"status_code": response.status_code}
                )

            try:
                return {"body": response.json()}
            except ValueError:
                # A 200 with an unreadable body is a contract problem, not an outage
                return {"body": None}

    async def resolve_segment(self, user_id: int) -> SegmentResolution:
        """Look up the segment label for a user."""
        try:
            result = await self.circuit_breaker.call(self._fetch_segment, user_id)
        except CircuitBreakerOpenException:
            return self._unresolved(user_id, "circuit_open")
        except UpstreamUnavailable as e:
            return self._unresolved(user_id, "upstream_error", error=e.message)

        body = result["body"]
        if not isinstance(body, dict):
            return self._unresolved(user_id, "malformed_body")

        segment = body.get("segment")
        if not isinstance(segment, str) or not segment.strip():
            return self._unresolved(user_id, "missing_segment")

        self._count("resolved")
        self.logger.debug("Segment resolved", user_id=user_id, segment=segment)
        return SegmentResolution.resolved(segment.strip())

    def _unresolved(self, user_id: int, reason: str, **extra) -> SegmentResolution:
        self._count(reason)
        self.logger.warning("Segment lookup degraded", user_id=user_id, reason=reason, **extra)
        return SegmentResolution.unresolved(reason)

    def _count(self, outcome: str):
        if self.metrics is not None:
            self.metrics.increment_counter("segment_lookups_total", outcome=outcome)
