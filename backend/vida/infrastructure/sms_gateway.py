"""SMS Gateway — Twilio REST delivery with a simulation mode for local runs.

Invariants:
    - send() never raises: provider failures come back as DeliveryResult(success=False)
    - Numbers are sent in E.164; bare Mexican numbers get +52
    - Simulation mode (no credentials) reports success with a SIM- message id

Design Decisions:
    - httpx against the Twilio REST API instead of the Twilio SDK: one POST,
      async, and trivially replaceable in tests via dependency_overrides
"""

import logging
import re
import time
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)

_PHONE_NOISE = re.compile(r"[\s\-().]")


@dataclass(frozen=True)
class DeliveryResult:
    success: bool
    message_id: str | None = None
    error: str | None = None
    simulated: bool = False


def format_phone_e164(phone: str) -> str:
    cleaned = _PHONE_NOISE.sub("", phone)
    if cleaned.startswith("+"):
        return cleaned
    if cleaned.startswith("52") and len(cleaned) > 10:
        return f"+{cleaned}"
    return f"+52{cleaned}"


def simulated_message_id() -> str:
    return f"SIM-{int(time.time() * 1000)}"


class SmsGateway:
    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        api_base: str = "https://api.twilio.com/2010-04-01",
        timeout: float = 10.0,
    ):
        self._sid = account_sid
        self._token = auth_token
        self._from = from_number
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout

    @property
    def simulation_mode(self) -> bool:
        return not (self._sid and self._token and self._from)

    async def send(self, to: str, body: str) -> DeliveryResult:
        if self.simulation_mode:
            logger.info(
                f"Simulated SMS to {to}: {body[:80]}",
                extra={"channel": "SMS", "event": "sms_simulated"},
            )
            return DeliveryResult(
                success=True, message_id=simulated_message_id(), simulated=True,
            )

        url = f"{self._api_base}/Accounts/{self._sid}/Messages.json"
        data = {"To": format_phone_e164(to), "From": self._from, "Body": body}
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    url, data=data, auth=(self._sid, self._token),
                )
            response.raise_for_status()
            return DeliveryResult(success=True, message_id=response.json().get("sid"))
        except httpx.HTTPStatusError as e:
            error = f"Twilio HTTP {e.response.status_code}"
            logger.warning(
                f"SMS delivery failed: {error}",
                extra={"channel": "SMS", "error_code": "SMS_FAILED"},
            )
            return DeliveryResult(success=False, error=error)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(
                f"SMS delivery failed: {e}",
                extra={"channel": "SMS", "error_code": "SMS_FAILED"},
            )
            return DeliveryResult(success=False, error=str(e)[:240])
