from stepflow.core.config import settings
from stepflow.middleware.logging import SKIPPED_PATHS, filter_headers, skipped_paths


def test_skipped_paths_follow_api_prefix():
    paths = skipped_paths("/v2")
    assert "/v2/health" in paths
    assert "/v2/health/ready" in paths
    assert "/api/health" not in paths
    assert "/metrics" in paths


def test_configured_prefix_is_skipped():
    assert f"{settings.api_prefix}/health/live" in SKIPPED_PATHS


def test_filter_headers_redacts_secrets():
    filtered = filter_headers({"Authorization": "Bearer abc", "X-Request-ID": "req-1"})
    assert filtered == {"Authorization": "[REDACTED]", "X-Request-ID": "req-1"}
