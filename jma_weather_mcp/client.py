import asyncio
import json
import os
import time
from typing import Any, Optional

import aiohttp

from .config import Settings, load_settings
from .errors import UpstreamFetchFailed
from .utils import logger, new_request_id

OVERVIEW_ENDPOINT = "forecast/data/overview_forecast"
FORECAST_ENDPOINT = "forecast/data/forecast"
AREA_JSON_PATH = "common/const/area.json"


class JMAClient:
    """
    JSON client for the JMA "bosai" endpoints.
    - GET https://www.jma.go.jp/bosai/<endpoint>/<code>.json
    - One attempt per call, bounded by settings.timeout_s; never retried
      (JMA publishes fixed snapshots, re-asking immediately gains nothing).
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.s = settings or load_settings()
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        await self._ensure()
        return self

    async def __aexit__(self, *_):
        await self.close()

    async def _ensure(self):
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.s.timeout_s)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={
                    "Accept": "application/json",
                    "Accept-Encoding": "gzip, deflate",
                    "User-Agent": self.s.user_agent,
                },
            )

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    def url_for(self, path: str) -> str:
        return str(self.s.base_url).rstrip("/") + "/" + path.lstrip("/")

    # ---------- HTTP helper ----------
    async def get_json(self, path: str) -> Any:
        """
        GET a JMA JSON document and return the decoded body.
        - Log response details if JMA_DEBUG_RESP=1
        - Any failure (network, timeout, non-2xx, undecodable body, bad JSON) -> UpstreamFetchFailed
        CancelledError is not caught, so a cancelled tool call aborts the request.
        """
        await self._ensure()
        assert self._session is not None

        url = self.url_for(path)
        rid = new_request_id()
        debug_resp = os.getenv("JMA_DEBUG_RESP") == "1"
        body_limit = int(os.getenv("JMA_LOG_BODY_LIMIT", "4000"))

        t0 = time.perf_counter()
        try:
            async with self._session.get(url) as resp:
                elapsed_ms = (time.perf_counter() - t0) * 1000.0
                text = await resp.text()

                if resp.status < 200 or resp.status >= 300:
                    preview = text if len(text) <= body_limit else text[:body_limit] + "\n...<truncated>"
                    logger.warning(
                        "jma_fetch_error",
                        extra={
                            "rid": rid,
                            "url": url,
                            "status": resp.status,
                            "elapsed_ms": round(elapsed_ms, 2),
                            "body_preview": preview,
                        },
                    )
                    raise UpstreamFetchFailed(url, f"HTTP {resp.status}")

                if debug_resp:
                    preview = text if len(text) <= body_limit else text[:body_limit] + "\n...<truncated>"
                    logger.info(
                        "jma_resp_ok",
                        extra={
                            "rid": rid,
                            "status": resp.status,
                            "elapsed_ms": round(elapsed_ms, 2),
                            "body_size": len(text),
                            "body_preview": preview,
                        },
                    )

        except (asyncio.TimeoutError, aiohttp.ClientError) as neterr:
            logger.warning(
                "jma_network_or_timeout",
                extra={"rid": rid, "url": url, "error": repr(neterr)},
            )
            raise UpstreamFetchFailed(url, repr(neterr)) from neterr
        except UnicodeDecodeError as ue:
            logger.warning("jma_resp_decode_error", extra={"rid": rid, "url": url, "error": str(ue)})
            raise UpstreamFetchFailed(url, "invalid JSON") from ue

        try:
            data = json.loads(text)
        except json.JSONDecodeError as je:
            logger.warning("jma_resp_json_decode_error", extra={"rid": rid, "url": url, "error": str(je)})
            raise UpstreamFetchFailed(url, "invalid JSON") from je

        logger.info("jma_fetch_ok", extra={"rid": rid, "url": url, "elapsed_ms": round(elapsed_ms, 2)})
        return data

    async def fetch(self, endpoint: str, region_code: str) -> Any:
        return await self.get_json(f"{endpoint}/{region_code}.json")

    async def get_overview(self, region_code: str) -> Any:
        return await self.fetch(OVERVIEW_ENDPOINT, region_code)

    async def get_forecast(self, region_code: str) -> Any:
        return await self.fetch(FORECAST_ENDPOINT, region_code)

    async def get_area_json(self) -> Any:
        return await self.get_json(AREA_JSON_PATH)
