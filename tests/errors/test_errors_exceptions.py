import unittest

from gdriveperms.errors.exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    GDrivePermsError,
    HttpErrorInfo,
    InvalidArgumentError,
    NetworkError,
    NotFoundError,
    PermissionError,
    QuotaExceededError,
    RateLimitError,
    ValidationError,
    is_transient,
    map_http_error,
)


class TestExceptions(unittest.TestCase):
    def test_base_error_keeps_details_and_cause(self) -> None:
        cause = RuntimeError("root")
        err = GDrivePermsError("msg", details={"k": "v"}, cause=cause)
        self.assertEqual(str(err), "msg")
        self.assertEqual(err.details["k"], "v")
        self.assertIs(err.cause, cause)

    def test_map_http_error_by_status(self) -> None:
        cases = {
            400: InvalidArgumentError,
            401: AuthError,
            404: NotFoundError,
            409: ConflictError,
            412: ConflictError,
            429: RateLimitError,
            503: ApiError,
            418: ApiError,
        }
        for status, expected in cases.items():
            with self.subTest(status=status):
                self.assertIsInstance(map_http_error(HttpErrorInfo(status_code=status)), expected)

    def test_map_http_error_403_quota_vs_permission(self) -> None:
        err = map_http_error(HttpErrorInfo(status_code=403, reason="storageQuotaExceeded"))
        self.assertIsInstance(err, QuotaExceededError)

        err = map_http_error(HttpErrorInfo(status_code=403, reason="insufficientFilePermissions"))
        self.assertIsInstance(err, PermissionError)

    def test_message_prefers_remote_text(self) -> None:
        err = map_http_error(HttpErrorInfo(status_code=404, message="File not found: abc."))
        self.assertEqual(str(err), "File not found: abc.")

        err = map_http_error(HttpErrorInfo(status_code=502))
        self.assertEqual(str(err), "HTTP error 502")
        self.assertEqual(err.details["status_code"], 502)

    def test_is_transient(self) -> None:
        self.assertTrue(is_transient(RateLimitError("x")))
        self.assertTrue(is_transient(NetworkError("x")))
        self.assertTrue(is_transient(ApiError("x", details={"status_code": 500})))
        self.assertFalse(is_transient(ApiError("x")))
        self.assertFalse(is_transient(NotFoundError("x")))
        self.assertFalse(is_transient(ValidationError("x")))


if __name__ == "__main__":
    unittest.main()
