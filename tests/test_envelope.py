# tests/test_envelope.py
import pytest

from app.core import envelope


def test_success_envelope():
    body = envelope.success([1, 2], pagination={"page": 1})
    assert body["status_code"] == "200"
    assert body["is_success"] is True
    assert body["error_code"] is None
    assert body["pagination"] == {"page": 1}


def test_success_without_pagination_has_no_key():
    assert "pagination" not in envelope.success({"product_id": "p1"})


def test_failure_envelope():
    body = envelope.failure(404, envelope.PRODUCT_NOT_FOUND, "Product not found")
    assert body == {
        "status_code": "404",
        "is_success": False,
        "error_code": "PRODUCT_NOT_FOUND",
        "data": None,
        "message": "Product not found",
    }


def test_failure_requires_error_code():
    with pytest.raises(ValueError):
        envelope.failure(500, "", "oops")


def test_from_backend_body_passes_envelopes_through():
    body = {"status_code": "201", "is_success": True, "error_code": None, "data": {"x": 1}, "extra": "kept"}
    assert envelope.from_backend_body(body) is body


def test_from_backend_body_wraps_bare_payload():
    wrapped = envelope.from_backend_body([{"product_id": "p1"}])
    assert wrapped["is_success"] is True
    assert wrapped["data"] == [{"product_id": "p1"}]


@pytest.mark.parametrize("body,expected", [
    ({"message": "bad title"}, "bad title"),
    ({"detail": "nope"}, "nope"),
    ({"message": "   "}, "fallback"),
    ("plain text", "fallback"),
    (None, "fallback"),
])
def test_backend_message(body, expected):
    assert envelope.backend_message(body, "fallback") == expected


@pytest.mark.parametrize("raw,expected", [("404", 404), (None, 500), ("abc", 500)])
def test_status_of(raw, expected):
    assert envelope.status_of({"status_code": raw}) == expected
