"""NOM-151 Client — timestamp sealing of directive documents through a PSC provider.

Invariants:
    - Only the document hash leaves the system, never the document
    - The demo API key returns a simulated certificate without network access
    - Provider failures raise ExternalServiceError (502)
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime

import httpx

from vida.core.clock import utcnow
from vida.core.errors import ExternalServiceError

logger = logging.getLogger(__name__)

DEMO_API_KEY = "demo-key"
DEMO_PROVIDER = "PSC Demo Provider"


@dataclass(frozen=True)
class SealResult:
    certificate: str
    timestamp: datetime
    provider: str
    simulated: bool = False


class Nom151Client:
    def __init__(self, endpoint: str, api_key: str, timeout: float = 15.0):
        self._endpoint = endpoint.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout

    @property
    def simulation_mode(self) -> bool:
        return not self._api_key or self._api_key == DEMO_API_KEY

    async def seal(self, document_hash: str) -> SealResult:
        if self.simulation_mode:
            logger.info("Simulated NOM-151 seal", extra={"event": "nom151_simulated"})
            return SealResult(
                certificate=f"NOM151-CERT-{secrets.token_hex(16).upper()}",
                timestamp=utcnow(),
                provider=DEMO_PROVIDER,
                simulated=True,
            )

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    f"{self._endpoint}/seals",
                    json={"hash": document_hash, "algorithm": "SHA-256"},
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
            response.raise_for_status()
            body = response.json()
            return SealResult(
                certificate=body["certificate"],
                timestamp=datetime.fromisoformat(body["timestamp"]),
                provider=body.get("provider", "PSC"),
            )
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError(
                "NOM-151", f"provider returned HTTP {e.response.status_code}",
            )
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error(f"NOM-151 sealing failed: {e}")
            raise ExternalServiceError("NOM-151", "sealing request failed")
