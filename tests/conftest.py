import pytest

from stream_helpers import photo_payload, sse


@pytest.fixture()
def full_stream() -> list[bytes]:
    return [
        sse("start", {"total": 3, "jobId": 10737}),
        sse("photo", photo_payload(1, "2025-03-03T09:15:00+10:00")),
        sse("progress", {"loaded": 1, "failed": 0, "total": 3}),
        sse("photo", photo_payload(2, "2025-03-03T11:40:00+10:00")),
        sse("progress", {"loaded": 2, "failed": 1, "total": 3}),
        sse("done", {"total": 3, "loaded": 2, "failed": 1}),
    ]
