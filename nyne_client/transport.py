import json
from typing import Literal, Optional

import aiohttp

from nyne_client.config import NyneConfig
from nyne_client.errors import ApiError, NonJsonResponseError
from nyne_client.log import NyneLogger

API_BASE = "https://api.nyne.ai"
REDACTED = "[REDACTED]"
EXCERPT_LENGTH = 200


class NyneTransport:
    """Performs one authenticated call against the Nyne API"""

    def __init__(
        self,
        config: NyneConfig,
        log: NyneLogger,
        base_url: str = API_BASE,
    ):
        self.config = config
        self.log = log
        self.base_url = base_url.rstrip("/")

    def _headers(self) -> dict:
        return {
            "X-API-Key": self.config.api_key,
            "X-API-Secret": self.config.api_secret,
            "Content-Type": "application/json",
        }

    def redact(self, text: str) -> str:
        """Replace every verbatim occurrence of the credentials.

        Matching is on the serialized text, so a credential containing `"`
        or `\\` appears JSON-escaped there and is not matched.
        """
        # Longest first so a credential nested in the other is not split
        credentials = (self.config.api_key, self.config.api_secret)
        for secret in sorted(credentials, key=len, reverse=True):
            if secret:
                text = text.replace(secret, REDACTED)
        return text

    async def request(
        self,
        session: aiohttp.ClientSession,
        endpoint: str,
        method: Literal["GET", "POST"] = "GET",
        body: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> dict:
        url = f"{self.base_url}{endpoint}"
        self.log.debug_request(f"{method} {endpoint}", body)

        payload = json.dumps(body) if body is not None and method == "POST" else None

        try:
            async with session.request(
                method, url, headers=self._headers(), data=payload, params=params
            ) as response:
                if "application/json" not in response.headers.get("Content-Type", ""):
                    text = await response.text(errors="replace")
                    raise NonJsonResponseError(response.status, text[:EXCERPT_LENGTH])

                data = await response.json(content_type=None)

                if response.status >= 400:
                    serialized = json.dumps(
                        data, separators=(",", ":"), ensure_ascii=False
                    )
                    raise ApiError(response.status, self.redact(serialized))

                self.log.debug_response(
                    f"{method} {endpoint}", {"status": response.status}
                )
                return data
        except (ApiError, NonJsonResponseError) as e:
            self.log.error(f"{method} {endpoint} failed: {e}")
            raise
        except aiohttp.ClientError as e:
            self.log.error(f"HTTP error at {method} {endpoint}: {e}")
            raise
