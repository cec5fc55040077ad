from datetime import datetime, timedelta, timezone

from stream_helpers import photo_payload, sse

from core.models import DoneEvent, ErrorEvent, ItemEvent, ProgressEvent, ReportPhoto, StartEvent
from core.services.frame_decoder import FrameDecoder, parse_acquisition_date


def _decode_in_pieces(data: bytes, cuts: list[int]) -> list:
    decoder = FrameDecoder()
    events = []
    start = 0
    for cut in [*cuts, len(data)]:
        events.extend(decoder.push(data[start:cut]))
        start = cut
    return events


def test_start_frame_split_mid_event_line_decodes_once():
    stream = b'event: start\ndata: {"total":2}\n\n'
    decoder = FrameDecoder()

    assert decoder.push(stream[:3]) == []
    assert decoder.pending == "eve"
    assert decoder.push(stream[3:]) == [StartEvent(total=2)]
    assert decoder.pending == ""


def test_malformed_json_frame_is_dropped():
    chunk = (
        b"event: progress\ndata: {not json\n\n"
        b'event: progress\ndata: {"loaded": 1, "total": 5}\n\n'
    )

    assert FrameDecoder().push(chunk) == [ProgressEvent(loaded=1, total=5)]


def test_decoding_is_invariant_to_chunk_boundaries():
    stream = b"".join(
        [
            sse("start", {"total": 2}),
            sse("photo", photo_payload(1, "2025-03-03T09:15:00Z", name="façade – crack.jpg")),
            b"event: progress\ndata: {broken\n\n",
            sse("progress", {"loaded": 1, "total": 2}),
            sse("error", {"code": "UNEXPECTED", "message": "Ünexpected"}),
        ]
    )
    expected = FrameDecoder().push(stream)
    assert len(expected) == 4

    for cut in range(len(stream) + 1):
        assert _decode_in_pieces(stream, [cut]) == expected
    assert _decode_in_pieces(stream, list(range(1, len(stream)))) == expected


def test_photo_frame_becomes_item_event():
    payload = photo_payload(7, "2025-03-03T09:15:00+10:00", name="north wall.jpg")

    (event,) = FrameDecoder().push(sse("photo", payload))

    assert event == ItemEvent(
        ReportPhoto(
            id="simpro_7",
            name="north wall.jpg",
            content_ref="https://cdn.example.com/7.jpg",
            size=1007,
            acquisition_date=datetime(2025, 3, 3, 9, 15, tzinfo=timezone(timedelta(hours=10))),
        )
    )


def test_item_alias_and_missing_date():
    (event,) = FrameDecoder().push(sse("item", photo_payload(1)))

    assert isinstance(event, ItemEvent)
    assert event.item.acquisition_date is None


def test_photo_without_id_is_dropped():
    assert FrameDecoder().push(sse("photo", {"name": "x.jpg", "url": "u"})) == []


def test_unknown_and_default_events_are_ignored():
    chunk = sse("heartbeat", {"at": 1}) + b'data: {"hello": "world"}\n\n'

    assert FrameDecoder().push(chunk) == []


def test_first_event_line_and_last_data_line_win():
    chunk = b'event: done\nevent: error\ndata: {"loaded": 1}\ndata: {"loaded": 4, "failed": 2}\n\n'

    assert FrameDecoder().push(chunk) == [DoneEvent(loaded=4, failed=2)]


def test_frames_without_data_or_with_non_object_payload_are_dropped():
    chunk = b"event: start\n\n" + b"event: start\ndata: [1, 2]\n\n" + b"\n\n"

    assert FrameDecoder().push(chunk) == []


def test_error_frame_defaults_message():
    assert FrameDecoder().push(sse("error", {"code": "AUTH_FAILED"})) == [
        ErrorEvent(message="Failed to load photos", code="AUTH_FAILED")
    ]


def test_crlf_line_endings_inside_frame():
    chunk = b'event: start\r\ndata: {"total": 4}\r\n\n'

    assert FrameDecoder().push(chunk) == [StartEvent(total=4)]


def test_crlf_framed_stream_at_every_split():
    stream = (
        b'event: start\r\ndata: {"total": 1}\r\n\r\n'
        b'event: photo\r\ndata: {"id": "simpro_1", "name": "roof.jpg", "url": "u"}\r\n\r\n'
        b'event: done\r\ndata: {"loaded": 1}\r\n\r\n'
    )
    expected = [
        StartEvent(total=1),
        ItemEvent(ReportPhoto(id="simpro_1", name="roof.jpg", content_ref="u")),
        DoneEvent(loaded=1),
    ]
    decoder = FrameDecoder()

    assert decoder.push(stream) == expected
    assert decoder.pending == ""
    for cut in range(1, len(stream)):
        assert _decode_in_pieces(stream, [cut]) == expected


def test_parse_acquisition_date():
    assert parse_acquisition_date("2025-03-03T00:00:00Z") == datetime(
        2025, 3, 3, tzinfo=timezone.utc
    )
    assert parse_acquisition_date("2025-03-03") == datetime(2025, 3, 3)
    assert parse_acquisition_date("yesterday") is None
    assert parse_acquisition_date(None) is None
    assert parse_acquisition_date(12345) is None
