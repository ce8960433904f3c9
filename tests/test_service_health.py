import json
import logging

from storefront.core.health import HealthStatus, ServiceHealth
from storefront.core.logging_config import SecurityFilter, StructuredFormatter

class TestHealthEndpoints:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "pass"
        assert resp.json()["service"] == "storefront-api"

    def test_liveness(self, client):
        assert client.get("/health/live").json() == {"status": "alive"}

    def test_readiness_reports_checks(self, client):
        resp = client.get("/health/ready")
        assert resp.status_code in (200, 503)
        assert set(resp.json()["checks"]) == {"database:connectivity", "storage:disk_space", "system:memory"}

    def test_metrics(self, client):
        body = client.get("/metrics").json()
        assert body["uptime_seconds"] >= 0
        assert "memory_rss_bytes" in body["system"]

    def test_request_id_echoed(self, client):
        resp = client.get("/health/live", headers={"X-Request-ID": "req-123"})
        assert resp.headers["X-Request-ID"] == "req-123"

def test_overall_status():
    checks = {"a": {"status": "pass"}, "b": {"status": "warn"}}
    assert ServiceHealth.calculate_overall_status(checks) is HealthStatus.WARN
    checks["c"] = {"status": "fail"}
    assert ServiceHealth.calculate_overall_status(checks) is HealthStatus.FAIL

def test_unknown_route_uses_canonical_body(client):
    resp = client.get("/api/nowhere")
    assert resp.status_code == 404
    assert resp.json() == {"error": {"status": 404, "info": "Not found."}}

def test_security_filter_redacts_secrets():
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "login password=hunter22 ok", None, None)
    SecurityFilter().filter(record)
    assert "hunter22" not in record.getMessage()

def test_structured_formatter_emits_json():
    record = logging.LogRecord("storefront.test", logging.WARNING, __file__, 1, "hello", None, None)
    record.extra_fields = {"order_id": 7}
    payload = json.loads(StructuredFormatter().format(record))
    assert payload["message"] == "hello"
    assert payload["level"] == "WARNING"
    assert payload["custom"] == {"order_id": 7}
