"""Same-origin relay between the browser and the hosted agent API."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .config import UpstreamConfig
from .errors import InternalError, InvalidInput, ProxyError, UpstreamError
from .extraction import first_match, rules_for
from .upstream import AgentClient

logger = logging.getLogger(__name__)

MAX_LOGGED_BODY = 2000


class ProxyHandler:
    """Forward a single message upstream and normalize the reply.

    ``handle`` returns the success envelope or raises a :class:`ProxyError`
    whose ``public_message`` is safe to show to the caller.
    """

    def __init__(
        self,
        config: UpstreamConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self.client = AgentClient(config, transport=transport)
        self.reply_rules = rules_for(config.contract.reply_fields)

    async def handle(self, message: Any) -> Dict[str, str]:
        if not isinstance(message, str) or not message:
            raise InvalidInput()

        try:
            response = await self.client.send(message)

            if not response.is_success:
                logger.error(
                    "Agent API error (status %d): %s",
                    response.status_code,
                    response.text[:MAX_LOGGED_BODY],
                )
                raise UpstreamError(response.status_code)

            data = response.json()
        except ProxyError:
            raise
        except Exception as e:
            logger.exception("Chat proxy error: %s", e)
            raise InternalError() from e

        reply = first_match(data, self.reply_rules)
        if reply is None:
            logger.warning("Agent reply had none of %s", list(self.config.contract.reply_fields))
            return {}
        return {"message": reply}

    async def aclose(self) -> None:
        await self.client.aclose()
