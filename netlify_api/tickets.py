"""
Получение access token через тикет (device authorization)

Тикет создается операцией createTicket, пользователь подтверждает его в
браузере, клиент опрашивает showTicket до authorized = true и обменивает
тикет на токен через exchangeTicket.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Union

from .config import DEFAULT_TICKET_POLL_MS, DEFAULT_TICKET_TIMEOUT_MS
from .exceptions import ResponseParseError, TicketTimeoutError

if TYPE_CHECKING:
    from .client import NetlifyClient

logger = logging.getLogger(__name__)

SHOW_TICKET = "showTicket"
EXCHANGE_TICKET = "exchangeTicket"
TICKET_ID_PARAM = "ticket_id"


def ticket_id_of(ticket: Union[str, Mapping[str, Any]]) -> str:
    if isinstance(ticket, Mapping):
        return ticket["id"]
    return ticket


class TicketExchangeCoordinator:
    """Опрос тикета до авторизации и обмен его на токен"""

    def __init__(
        self,
        client: "NetlifyClient",
        poll_interval_ms: float = DEFAULT_TICKET_POLL_MS,
        timeout_ms: float = DEFAULT_TICKET_TIMEOUT_MS,
    ):
        self.client = client
        self.poll_interval_ms = poll_interval_ms
        self.timeout_ms = timeout_ms

    async def wait_for_authorization(self, ticket_id: str) -> Dict[str, Any]:
        """
        Опрос showTicket с интервалом poll_interval_ms.

        Дедлайн абсолютный и проверяется перед каждой итерацией: после его
        истечения новые запросы не отправляются, а зависший опрос прерывается.

        Raises:
            TicketTimeoutError: тикет не авторизован до дедлайна
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout_ms / 1000
        interval = self.poll_interval_ms / 1000
        polls = 0

        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            await asyncio.sleep(min(interval, remaining))

            remaining = deadline - loop.time()
            if remaining <= 0:
                break

            polls += 1
            try:
                ticket = await asyncio.wait_for(
                    self.client.call(SHOW_TICKET, {TICKET_ID_PARAM: ticket_id}),
                    timeout=remaining,
                )
            except asyncio.TimeoutError:
                break

            if isinstance(ticket, dict) and ticket.get("authorized"):
                logger.info(f"Ticket {ticket_id} authorized after {polls} polls")
                return ticket

        logger.warning(f"Ticket {ticket_id} not authorized after {polls} polls")
        raise TicketTimeoutError(ticket_id, self.timeout_ms)

    async def exchange(
        self, ticket: Mapping[str, Any], ticket_id: Optional[str] = None
    ) -> str:
        """
        Обмен авторизованного тикета на токен.

        ticket_id - id, по которому шел опрос; используется, если в ответе
        showTicket поля id нет.
        """
        ticket_id = ticket.get("id") or ticket_id
        if not ticket_id:
            raise ResponseParseError("Authorized ticket has no id")

        response = await self.client.call(EXCHANGE_TICKET, {TICKET_ID_PARAM: ticket_id})
        access_token = response.get("access_token") if isinstance(response, dict) else None
        if not access_token:
            raise ResponseParseError("Exchange response has no access_token")

        self.client.set_token(access_token)
        logger.info("Access token stored on client")
        return access_token

    async def run(self, ticket: Union[str, Mapping[str, Any]]) -> str:
        ticket_id = ticket_id_of(ticket)
        authorized_ticket = await self.wait_for_authorization(ticket_id)
        return await self.exchange(authorized_ticket, ticket_id)
