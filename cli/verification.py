# cli/verification.py
"""
Verification functions run against a live StepFlow API.
All functions return structured results: (success: bool, message: str, data: dict)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

SAMPLE_FIELDS: Dict[str, Dict[str, Any]] = {
    "baroform": {
        "name": "홍길동",
        "contact": "01012345678",
        "employment_after_cert": "O",
        "privacy_agreed": True,
    },
    "practice": {
        "name": "홍길동",
        "contact": "01012345678",
        "practice_service": True,
        "employment_hope": "hope",
        "practice_start_date": "2025-03-01",
        "privacy_agreed": True,
    },
}


@dataclass
class VerificationResult:
    """Structured result from verification functions."""
    success: bool
    message: str
    data: Dict[str, Any] = field(default_factory=dict)


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("message", response.text)
    except ValueError:
        return response.text


async def check_api_health(api_url: str = "http://localhost:8000", timeout: float = 5.0) -> VerificationResult:
    """Check if API is running and the liveness endpoint responds."""
    url = f"{api_url}/api/health/live"
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(url)
    except httpx.RequestError as e:
        return VerificationResult(
            success=False,
            message=f"API not accessible at {api_url}: {e}",
            data={'error': str(e), 'url': api_url},
        )

    if response.status_code == 200:
        return VerificationResult(
            success=True,
            message="API health check passed",
            data={'status_code': response.status_code, 'url': url},
        )
    return VerificationResult(
        success=False,
        message=f"API health check failed with status {response.status_code}",
        data={'status_code': response.status_code, 'url': url},
    )


async def check_flow(
    api_url: str = "http://localhost:8000",
    variant: str = "baroform",
    utm_source: Optional[str] = None,
    submit: bool = False,
    timeout: float = 15.0,
) -> VerificationResult:
    """
    Walk one form flow: open, advance past the intro, fill the sample record
    and optionally submit it to the configured consultation endpoint.
    """
    params = {'utm_source': utm_source} if utm_source else {}
    base = f"{api_url}/api/flows"

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(f"{base}/{variant}", params=params)
            if response.status_code != 201:
                return VerificationResult(
                    success=False,
                    message=f"Could not open flow: {_error_message(response)}",
                    data={'status_code': response.status_code},
                )
            flow = response.json()
            flow_id = flow['id']

            if flow['step'] == 1:
                response = await client.post(f"{base}/{flow_id}/next")
                response.raise_for_status()

            response = await client.patch(f"{base}/{flow_id}/fields", json=SAMPLE_FIELDS[variant])
            response.raise_for_status()
            flow = response.json()

            data = {
                'flow_id': flow_id,
                'click_source': flow['click_source'],
                'checks': flow['checks'],
                'progress_percent': flow['progress_percent'],
            }
            if not flow['submittable']:
                return VerificationResult(
                    success=False,
                    message="Sample record is not submittable",
                    data=data,
                )

            if not submit:
                return VerificationResult(success=True, message="Flow is submittable", data=data)

            response = await client.post(f"{base}/{flow_id}/submit")
            if response.status_code != 200:
                return VerificationResult(
                    success=False,
                    message=f"Submission failed: {_error_message(response)}",
                    data={**data, 'status_code': response.status_code},
                )
            return VerificationResult(
                success=True,
                message="Flow submitted and completed",
                data={**data, 'step': response.json()['flow']['step']},
            )
    except httpx.HTTPStatusError as e:
        return VerificationResult(
            success=False,
            message=f"Flow step failed: {_error_message(e.response)}",
            data={'status_code': e.response.status_code, 'url': str(e.request.url)},
        )
    except httpx.RequestError as e:
        return VerificationResult(
            success=False,
            message=f"API not accessible at {api_url}: {e}",
            data={'error': str(e)},
        )
