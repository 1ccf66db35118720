"""
Observability middleware tests (request id header + single structured log line).

- Every response carries `X-Request-ID`: a safe client value is echoed, anything
  else is replaced by a uuid4 hex.
- One INFO line per request on the `api_scaffold.request` logger.
- `KeyValueFormatter` renders request attributes only when a record has them.
"""

from __future__ import annotations

import logging

from django.test import SimpleTestCase, TestCase

from core.logging import KeyValueFormatter, RequestIDFilter, request_id_var


class ObservabilityMiddlewareTests(TestCase):
    def test_response_includes_request_id_and_logs_once(self):
        with self.assertLogs("api_scaffold.request", level="INFO") as cap:
            r = self.client.get("/api/v1/health")
        self.assertEqual(r.status_code, 200, r.content)

        rid = r.headers.get("X-Request-ID")
        self.assertIsNotNone(rid)
        self.assertRegex(rid, r"^[A-Za-z0-9._\-]{1,200}$")
        self.assertEqual(len(cap.records), 1)
        record = cap.records[0]
        self.assertEqual(record.status, 200)
        self.assertEqual(record.path, "/api/v1/health")
        self.assertEqual(record.request_id, rid)

    def test_client_provided_request_id_is_respected(self):
        r = self.client.get("/api/v1/health", HTTP_X_REQUEST_ID="custom-123_OK")
        self.assertEqual(r.headers.get("X-Request-ID"), "custom-123_OK")

    def test_bad_client_request_id_is_replaced(self):
        r = self.client.get("/api/v1/health", HTTP_X_REQUEST_ID="BAD ID")
        self.assertNotEqual(r.headers.get("X-Request-ID"), "BAD ID")
        self.assertRegex(r.headers.get("X-Request-ID") or "", r"^[a-f0-9]{32}$")

    def test_rejected_requests_still_get_request_id(self):
        r = self.client.post("/api/_init/mysql/write", data="x", content_type="text/plain")
        self.assertEqual(r.status_code, 415)
        self.assertTrue(r.headers.get("X-Request-ID"))

    def test_request_id_does_not_leak_after_request(self):
        self.client.get("/api/v1/health", HTTP_X_REQUEST_ID="scoped-1")
        self.assertEqual(request_id_var.get(), "-")


class KeyValueFormatterTests(SimpleTestCase):
    def _record(self, **extra):
        record = logging.LogRecord("api_scaffold.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        for key, value in extra.items():
            setattr(record, key, value)
        RequestIDFilter().filter(record)
        return record

    def test_plain_record(self):
        line = KeyValueFormatter().format(self._record())
        self.assertEqual(line, "level=INFO logger=api_scaffold.test request_id=- message=hello world")

    def test_request_line_fields(self):
        line = KeyValueFormatter().format(self._record(method="GET", path="/up", status=200, request_id="abc"))
        self.assertIn("request_id=abc", line)
        self.assertIn("method=GET path=/up status=200", line)
        self.assertNotIn("duration_ms", line)
