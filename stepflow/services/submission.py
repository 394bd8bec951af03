# stepflow/services/submission.py
from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from stepflow.core.config import settings
from stepflow.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

SAVE_FAILED_MESSAGE = "저장에 실패했습니다."
RETRY_MESSAGE = "저장에 실패했습니다. 다시 시도해주세요."


@dataclass(frozen=True)
class SubmissionResult:
    success: bool
    status: Optional[int]
    message: str


class ConsultationClient:
    """Posts assembled consultation records to the storage endpoint."""

    def __init__(self, url: str, timeout: int = 10):
        self.url = url
        self.timeout = timeout

    async def submit(self, payload: Dict[str, Any]) -> SubmissionResult:
        """
        POST the record once. Returns a result instead of raising; a non-2xx
        response carries the backend's ``error`` message when it sends one.
        """
        headers = {
            "Content-Type": "application/json",
            "User-Agent": "StepFlow-Submission/1.0",
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.url,
                    json=payload,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    status = response.status
                    if 200 <= status < 300:
                        return SubmissionResult(success=True, status=status, message="")

                    message = await self._error_message(response)
                    logger.warning(
                        "submission.rejected",
                        url=self.url,
                        status_code=status,
                        error=message,
                    )
                    return SubmissionResult(success=False, status=status, message=message)
        except asyncio.TimeoutError:
            logger.error("submission.timeout", url=self.url, timeout=self.timeout)
            return SubmissionResult(success=False, status=None, message=RETRY_MESSAGE)
        except aiohttp.ClientError as e:
            logger.error("submission.client_error", url=self.url, error=str(e)[:200])
            return SubmissionResult(success=False, status=None, message=RETRY_MESSAGE)

    async def _error_message(self, response: aiohttp.ClientResponse) -> str:
        try:
            body = await response.json(content_type=None)
        except (aiohttp.ContentTypeError, json.JSONDecodeError, UnicodeDecodeError):
            return SAVE_FAILED_MESSAGE
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return SAVE_FAILED_MESSAGE


_client: Optional[ConsultationClient] = None


def get_consultation_client() -> ConsultationClient:
    """FastAPI dependency returning the shared consultation client."""
    global _client

    if _client is None:
        _client = ConsultationClient(
            url=settings.consultation_endpoint_url,
            timeout=settings.submission_timeout_seconds,
        )

    return _client
