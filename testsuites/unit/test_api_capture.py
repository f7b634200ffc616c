import pytest

from testsuites.ui_testing.framework.api_capture import ApiCall, ApiCapture, ApiFailureError


class DummyPage:
    def __init__(self):
        self.handlers = []

    def on(self, event, handler):
        self.handlers.append((event, handler))


class DummyRequest:
    def __init__(self, method, resource_type):
        self.method = method
        self.resource_type = resource_type


class DummyResponse:
    def __init__(self, url, status, resource_type="xhr", method="GET", body="{}"):
        self.url = url
        self.status = status
        self.status_text = "Error" if status >= 400 else "OK"
        self.request = DummyRequest(method, resource_type)
        self._body = body

    async def text(self):
        return self._body


def test_start_subscribes_once():
    page = DummyPage()
    capture = ApiCapture(page)
    capture.start()
    capture.start()
    assert [event for event, _ in page.handlers] == ["response"]


@pytest.mark.asyncio
async def test_only_xhr_and_fetch_are_recorded():
    capture = ApiCapture(DummyPage())

    await capture._on_response(DummyResponse("https://crm/api/lists", 200))
    await capture._on_response(DummyResponse("https://crm/app.js", 404, resource_type="script"))
    await capture._on_response(DummyResponse("https://crm/api/import", 500, resource_type="fetch", body="x" * 5000))

    assert [c.url for c in capture.calls] == ["https://crm/api/lists", "https://crm/api/import"]
    assert len(capture.failures) == 1
    assert len(capture.failures[0].response_body) == 2000


def test_failures_are_logged_when_continuing():
    capture = ApiCapture(DummyPage(), continue_on_failure=True)
    capture.record(ApiCall(url="https://crm/api/x", method="POST", status=502))

    capture.raise_if_failed("save mapping")

    assert capture.last_failure().status == 502


def test_failures_raise_when_not_continuing():
    capture = ApiCapture(DummyPage(), continue_on_failure=False)
    capture.record(ApiCall(url="https://crm/api/ok", method="GET", status=200))
    capture.raise_if_failed()

    capture.record(ApiCall(url="https://crm/api/x", method="POST", status=500))
    with pytest.raises(ApiFailureError, match="save mapping"):
        capture.raise_if_failed("save mapping")


def test_summary_and_clear():
    capture = ApiCapture(DummyPage())
    capture.record(ApiCall(url="https://crm/a", method="GET", status=200))
    capture.record(ApiCall(url="https://crm/b", method="GET", status=403))

    summary = capture.summary()
    assert summary["total"] == 2
    assert summary["failed"] == 1
    assert summary["failures"][0]["url"] == "https://crm/b"
    assert capture.recent(1)[0].url == "https://crm/b"

    capture.clear()
    assert capture.calls == []
    assert capture.last_failure() is None
