import aiohttp
import asyncio
import logging
import random
from typing import Any, Dict, List, Optional, Tuple

from src.domain.exceptions import ConflictError, NotFoundError, UnavailableError
from src.domain.models import Idea
from src.domain.repository import IdeaRepository
from src.infrastructure.acl import IdeaTranslator

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = aiohttp.ClientTimeout(total=30, connect=10)
MAX_RETRIES = 5
RETRYABLE_STATUSES = {500, 502, 503, 504}
CONFLICT_STATUSES = {409, 412}

class HttpRepository(IdeaRepository):
    """
    Repository backed by a remote REST API exposing `/ideas` and `/ideas/{id}`.

    The aiohttp session is injected and owned by the caller; calls may be
    issued concurrently up to the session's connector limit. Transport errors,
    429 and 5xx responses are retried with exponential backoff before the
    call is reported as UnavailableError. Updates send the expected version in
    `If-Match`; the server answers 409 or 412 when it no longer matches.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str,
        token: Optional[str] = None,
        max_retries: int = MAX_RETRIES,
    ):
        self.session = session
        self.base_url = base_url.rstrip('/')
        self.max_retries = max_retries
        self.headers = {
            "Accept": "application/json",
            "User-Agent": "rating-core",
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    def _url(self, idea_id: Optional[str] = None) -> str:
        if idea_id is None:
            return f"{self.base_url}/ideas"
        return f"{self.base_url}/ideas/{idea_id}"

    async def _request(
        self,
        method: str,
        url: str,
        payload: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        read_body: bool = False,
    ) -> Tuple[int, Any]:
        """
        Sends one logical request, retrying transient failures.

        Returns:
            Tuple of (status, decoded JSON body or None).
        """
        request_headers = {**self.headers, **(headers or {})}

        for attempt in range(self.max_retries):
          try:
            async with self.session.request(
                method, url, json=payload, headers=request_headers, timeout=REQUEST_TIMEOUT
            ) as response:
                if response.status == 429:
                  retry_after = response.headers.get('Retry-After')
                  # Retry-After may also be an HTTP date; fall back to backoff then.
                  sleep_time = int(retry_after) if retry_after and retry_after.isdigit() else 2 ** attempt
                  logger.warning(f"Rate limited (429) on {method} {url}. Sleeping {sleep_time}s...")
                  await asyncio.sleep(sleep_time)
                  continue

                if response.status in RETRYABLE_STATUSES:
                  sleep_time = (2 ** attempt) + random.uniform(0, 1)
                  logger.warning(
                      f"Server error ({response.status}) on {method} {url}, "
                      f"retrying in {sleep_time:.1f}s (attempt {attempt + 1}/{self.max_retries})..."
                  )
                  await asyncio.sleep(sleep_time)
                  continue

                body = None
                if read_body and response.status == 200:
                    try:
                        body = await response.json(content_type=None)
                    except ValueError as e:
                        logger.error(f"Undecodable body from {method} {url}: {e}")
                        raise UnavailableError(f"{method} {url} returned a body that is not JSON.") from e
                return response.status, body

          except (aiohttp.ClientError, asyncio.TimeoutError) as e:
              sleep_time = (2 ** attempt) + random.uniform(0, 1)
              logger.warning(
                  f"Request {method} {url} failed (attempt {attempt + 1}/{self.max_retries}): {e}. "
                  f"Retrying in {sleep_time:.1f}s..."
              )
              await asyncio.sleep(sleep_time)

        raise UnavailableError(f"{method} {url} failed after {self.max_retries} attempts.")

    @staticmethod
    def _unexpected(method: str, url: str, status: int) -> UnavailableError:
        logger.error(f"Unexpected status {status} for {method} {url}.")
        return UnavailableError(f"Unexpected status {status} for {method} {url}.")

    def _decode(self, idea_id: str, body: Any) -> Idea:
        try:
            return IdeaTranslator.to_domain(body or {})
        except (ValueError, AttributeError) as e:
            raise UnavailableError(f"Malformed idea payload for {idea_id!r}.") from e

    async def find(self, idea_id: str) -> Idea:
        url = self._url(idea_id)
        status, body = await self._request("GET", url, read_body=True)
        if status == 404:
            raise NotFoundError(idea_id)
        if status != 200:
            raise self._unexpected("GET", url, status)
        return self._decode(idea_id, body)

    async def save(self, idea: Idea) -> None:
        url = self._url()
        status, _ = await self._request("POST", url, payload=IdeaTranslator.to_record(idea))
        if status in CONFLICT_STATUSES:
            raise ConflictError(idea.id, "Idea already exists.")
        if status not in (200, 201, 204):
            raise self._unexpected("POST", url, status)

    async def update(self, idea: Idea) -> Idea:
        url = self._url(idea.id)
        status, body = await self._request(
            "PUT",
            url,
            payload=IdeaTranslator.to_record(idea),
            headers={"If-Match": f'"{idea.version}"'},
            read_body=True,
        )
        if status == 404:
            raise NotFoundError(idea.id)
        if status in CONFLICT_STATUSES:
            raise ConflictError(idea.id, f"Stale version {idea.version}.")
        if status == 204 or (status == 200 and not body):
            return idea.model_copy(update={'version': idea.version + 1})
        if status != 200:
            raise self._unexpected("PUT", url, status)
        return self._decode(idea.id, body)

    async def delete(self, idea_id: str) -> None:
        url = self._url(idea_id)
        status, _ = await self._request("DELETE", url)
        if status == 404:
            raise NotFoundError(idea_id)
        if status not in (200, 202, 204):
            raise self._unexpected("DELETE", url, status)

    async def list_ids(self) -> List[str]:
        url = self._url()
        status, body = await self._request("GET", url, read_body=True)
        if status != 200 or not isinstance(body, list):
            raise self._unexpected("GET", url, status)
        return sorted(str(item['id']) for item in body if isinstance(item, dict) and item.get('id'))
