"""Outbound client for the hosted agent API."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .config import UpstreamConfig

logger = logging.getLogger(__name__)

UA = "ResumeAssistant/0.1 (+https://local)"


class AgentClient:
    """One ``httpx.AsyncClient`` shared by all proxy invocations.

    The client keeps no per-request state, so concurrent calls are safe.
    """

    def __init__(
        self,
        config: UpstreamConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout),
            headers={"User-Agent": UA, "Accept": "application/json"},
            transport=transport,
        )

    def build_headers(self) -> Dict[str, str]:
        contract = self.config.contract
        return {
            "Content-Type": "application/json",
            contract.auth_header: contract.auth_value(self.config.credential),
        }

    def build_body(self, message: str) -> Dict[str, Any]:
        contract = self.config.contract
        body: Dict[str, Any] = {}
        if contract.agent_field:
            body[contract.agent_field] = self.config.agent_id
        body[contract.message_field] = message
        return body

    async def send(self, message: str) -> httpx.Response:
        """POST one message upstream. Transport errors propagate."""
        logger.debug("POST %s (contract=%s)", self.config.url, self.config.contract.name)
        return await self._client.post(
            self.config.url,
            headers=self.build_headers(),
            json=self.build_body(message),
        )

    async def aclose(self) -> None:
        await self._client.aclose()
