"""
Unit tests for the request admission gate (`core.admission.evaluate`).

Contract
--------
- Non-write methods are forwarded whatever their content type or body.
- Exempt paths are forwarded whatever their method, content type or body.
- Write requests need a JSON media type (415 otherwise) and, when a body is
  present, valid JSON (400 with a parser diagnostic otherwise).

The gate is framework-free, so these tests use `RequestSnapshot` and
`SimpleTestCase` (no database, no HTTP client).
"""

from __future__ import annotations

from django.test import SimpleTestCase

from core.admission import (
    FORWARD,
    UNSUPPORTED_MEDIA_TYPE_MESSAGE,
    PathPatterns,
    Reject,
    RejectionKind,
    RequestSnapshot,
    evaluate,
    is_json_content_type,
)

EXCEPT_PATHS = PathPatterns(["api/v1/files/*", "api/v1/webhooks/*"])


def _req(method="POST", path="api/v1/things", content_type="application/json", body=b"{}", headers=None):
    hdrs = dict(headers or {})
    if content_type is not None:
        hdrs.setdefault("Content-Type", content_type)
    return RequestSnapshot(method=method, path=path, headers=hdrs, body=body)


class NonWriteMethodTests(SimpleTestCase):
    def test_read_and_delete_methods_always_forward(self):
        for method in ("GET", "DELETE", "HEAD", "OPTIONS"):
            with self.subTest(method=method):
                decision = evaluate(_req(method=method, content_type="text/plain", body=b"{nope"), EXCEPT_PATHS)
                self.assertIs(decision, FORWARD)

    def test_lowercase_write_method_is_still_checked(self):
        decision = evaluate(_req(method="post", content_type="text/plain"), EXCEPT_PATHS)
        self.assertIsInstance(decision, Reject)


class ExemptPathTests(SimpleTestCase):
    def test_exempt_paths_forward_regardless_of_payload(self):
        for path in ("api/v1/files/upload", "api/v1/files/a/b/c", "api/v1/webhooks/stripe"):
            for method in ("POST", "PUT", "PATCH"):
                with self.subTest(path=path, method=method):
                    decision = evaluate(
                        _req(method=method, path=path, content_type="multipart/form-data", body=b"--x"),
                        EXCEPT_PATHS,
                    )
                    self.assertIs(decision, FORWARD)

    def test_surrounding_slashes_are_ignored(self):
        decision = evaluate(_req(path="/api/v1/files/upload/", content_type="text/plain"), EXCEPT_PATHS)
        self.assertIs(decision, FORWARD)

    def test_prefix_without_segment_is_not_exempt(self):
        # `api/v1/files/*` needs something after the slash
        decision = evaluate(_req(path="api/v1/files", content_type="text/plain"), EXCEPT_PATHS)
        self.assertIsInstance(decision, Reject)

    def test_matching_is_case_sensitive(self):
        decision = evaluate(_req(path="api/v1/FILES/upload", content_type="text/plain"), EXCEPT_PATHS)
        self.assertIsInstance(decision, Reject)

    def test_plain_string_patterns_are_accepted(self):
        decision = evaluate(_req(path="hooks/in", content_type="text/plain"), ["hooks/*"])
        self.assertIs(decision, FORWARD)

    def test_no_patterns_means_no_exemptions(self):
        decision = evaluate(_req(path="api/v1/files/upload", content_type="text/plain"))
        self.assertIsInstance(decision, Reject)


class ContentTypeTests(SimpleTestCase):
    def test_json_with_object_body_forwards(self):
        for method in ("POST", "PUT", "PATCH"):
            with self.subTest(method=method):
                self.assertIs(evaluate(_req(method=method), EXCEPT_PATHS), FORWARD)

    def test_text_plain_is_415(self):
        for method in ("POST", "PUT", "PATCH"):
            with self.subTest(method=method):
                decision = evaluate(_req(method=method, content_type="text/plain", body=b"hello"), EXCEPT_PATHS)
                self.assertIsInstance(decision, Reject)
                self.assertEqual(decision.status_code, 415)
                self.assertIs(decision.kind, RejectionKind.UNSUPPORTED_MEDIA_TYPE)
                self.assertEqual(decision.message, UNSUPPORTED_MEDIA_TYPE_MESSAGE)

    def test_missing_content_type_is_415_even_with_empty_body(self):
        decision = evaluate(_req(content_type=None, body=b""), EXCEPT_PATHS)
        self.assertEqual(decision.status_code, 415)

    def test_vendor_suffix_json_forwards(self):
        decision = evaluate(_req(content_type="application/vnd.api+json", body=b'{"data": []}'), EXCEPT_PATHS)
        self.assertIs(decision, FORWARD)

    def test_header_lookup_is_case_insensitive(self):
        decision = evaluate(
            _req(content_type=None, headers={"content-type": "application/json"}), EXCEPT_PATHS
        )
        self.assertIs(decision, FORWARD)

    def test_media_type_recognition(self):
        accepted = [
            "application/json",
            "APPLICATION/JSON",
            "application/json; charset=utf-8",
            "application/json;charset=utf-8",
            "application/problem+json",
            "application/vnd.example.v2+json; q=1",
        ]
        rejected = [
            "",
            "text/plain",
            "text/json",
            "application/jsonp",
            "application/json-patch",
            "application/json ; charset=utf-8",
            "application/+json",
            "application/x-www-form-urlencoded",
            "multipart/form-data; boundary=x",
        ]
        for value in accepted:
            with self.subTest(value=value):
                self.assertTrue(is_json_content_type(value))
        for value in rejected:
            with self.subTest(value=value):
                self.assertFalse(is_json_content_type(value))


class BodyTests(SimpleTestCase):
    def test_empty_body_forwards(self):
        self.assertIs(evaluate(_req(body=b""), EXCEPT_PATHS), FORWARD)

    def test_invalid_json_is_400_with_diagnostic(self):
        decision = evaluate(_req(body=b'{"a":}'), EXCEPT_PATHS)
        self.assertIsInstance(decision, Reject)
        self.assertEqual(decision.status_code, 400)
        self.assertIs(decision.kind, RejectionKind.MALFORMED_JSON)
        self.assertTrue(decision.message.startswith("Malformed JSON: "))
        self.assertGreater(len(decision.message), len("Malformed JSON: "))

    def test_scalars_and_arrays_are_valid_json(self):
        for body in (b"[]", b"1", b'"x"', b"null", b" {\"a\": [1, 2]} \n"):
            with self.subTest(body=body):
                self.assertIs(evaluate(_req(body=body), EXCEPT_PATHS), FORWARD)

    def test_whitespace_only_body_is_malformed(self):
        self.assertEqual(evaluate(_req(body=b"   "), EXCEPT_PATHS).status_code, 400)

    def test_non_standard_constants_are_malformed(self):
        for body in (b"NaN", b'{"a": Infinity}', b"-Infinity"):
            with self.subTest(body=body):
                self.assertEqual(evaluate(_req(body=body), EXCEPT_PATHS).status_code, 400)

    def test_invalid_utf8_is_malformed_not_a_crash(self):
        decision = evaluate(_req(body=b'{"a": "\xff\xfe\xfa"}'), EXCEPT_PATHS)
        self.assertEqual(decision.status_code, 400)
        self.assertTrue(decision.message.startswith("Malformed JSON: Malformed UTF-8"), decision.message)

    def test_utf16_body_is_malformed(self):
        for encoding in ("utf-16", "utf-16-le", "utf-32"):
            with self.subTest(encoding=encoding):
                decision = evaluate(_req(body='{"a": 1}'.encode(encoding)), EXCEPT_PATHS)
                self.assertIsInstance(decision, Reject)
                self.assertIs(decision.kind, RejectionKind.MALFORMED_JSON)

    def test_utf8_bom_is_malformed(self):
        decision = evaluate(_req(body=b'\xef\xbb\xbf{"a": 1}'), EXCEPT_PATHS)
        self.assertIsInstance(decision, Reject)
        self.assertEqual(decision.status_code, 400)

    def test_very_long_numbers_are_valid_json(self):
        for body in (b'{"n": ' + b"1" * 5000 + b"}", b"-" + b"9" * 5000, b"[" + b"7" * 5000 + b".25]"):
            with self.subTest(length=len(body)):
                self.assertIs(evaluate(_req(body=body), EXCEPT_PATHS), FORWARD)

    def test_deep_nesting_is_malformed_not_a_crash(self):
        decision = evaluate(_req(body=b"[" * 100_000), EXCEPT_PATHS)
        self.assertEqual(decision.status_code, 400)


class DecisionTests(SimpleTestCase):
    def test_evaluation_is_repeatable(self):
        for request in (_req(), _req(content_type="text/plain"), _req(body=b"{")):
            with self.subTest(request=request):
                self.assertEqual(evaluate(request, EXCEPT_PATHS), evaluate(request, EXCEPT_PATHS))

    def test_reject_payload_envelope(self):
        self.assertEqual(
            evaluate(_req(content_type="text/plain"), EXCEPT_PATHS).as_payload(),
            {"error": "Unsupported Media Type", "message": UNSUPPORTED_MEDIA_TYPE_MESSAGE},
        )
        self.assertEqual(evaluate(_req(body=b"{"), EXCEPT_PATHS).as_payload()["error"], "Bad Request")

    def test_body_is_not_read_when_not_needed(self):
        class ExplodingBody:
            method = "POST"
            path = "api/v1/things"
            headers = {"Content-Type": "text/plain"}

            @property
            def body(self):
                raise AssertionError("body should not be read")

        self.assertEqual(evaluate(ExplodingBody(), EXCEPT_PATHS).status_code, 415)

    def test_path_patterns_are_immutable(self):
        patterns = PathPatterns(["a/*"])
        with self.assertRaises(AttributeError):
            patterns.patterns = ("b/*",)
        self.assertEqual(patterns.patterns, ("a/*",))
