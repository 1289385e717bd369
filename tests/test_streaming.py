"""Tests for the streamed chat response decoder."""

import logging

import httpx
import pytest

from dialoqbase_sdk.errors import MalformedFramePayloadError, TransportError
from dialoqbase_sdk.streaming import (
    ChatStream,
    ChunkDecoder,
    EventFrame,
    EventFrameParser,
    MessageSequencer,
)
from helpers import RecordingStream, frame, streamed_response


def chat_stream(*chunks: bytes, fail_after: int | None = None):
    body = RecordingStream(chunks, fail_after=fail_after)
    return ChatStream(streamed_response(body)), body


class TestChunkDecoder:
    """Tests for ChunkDecoder."""

    def test_split_multibyte_character(self):
        """A character split across chunks decodes like an unsplit one."""
        raw = "héllo 世界".encode()
        cut = raw.index("世".encode()) + 1

        decoder = ChunkDecoder()
        split = decoder.decode(raw[:cut]) + decoder.decode(raw[cut:]) + decoder.flush()

        assert split == "héllo 世界"
        assert split == ChunkDecoder().decode(raw)

    def test_invalid_bytes_do_not_raise(self):
        """Malformed bytes become replacement characters."""
        decoder = ChunkDecoder()
        assert decoder.decode(b"ok \xff") == "ok \ufffd"

    def test_flush_emits_dangling_bytes(self):
        """A truncated sequence at end of input is replaced on flush."""
        decoder = ChunkDecoder()
        assert decoder.decode("世".encode()[:2]) == ""
        assert decoder.flush() == "\ufffd"


class TestEventFrameParser:
    """Tests for EventFrameParser."""

    def test_parses_frames_in_order(self):
        parser = EventFrameParser()
        frames = parser.feed(frame("update", {"a": 1}) + frame("result", {"a": 2}))

        assert frames == [
            EventFrame("update", {"a": 1}),
            EventFrame("result", {"a": 2}),
        ]
        assert parser.remainder == ""

    def test_frame_split_between_lines(self):
        """Event and data lines delivered separately form one frame."""
        parser = EventFrameParser()

        assert parser.feed("event: update\n") == []
        assert parser.remainder == "event: update\n"
        assert parser.feed('data: {"a": 1}\n') == [EventFrame("update", {"a": 1})]

    def test_data_line_needs_terminator(self):
        """A data line is only complete once its line break arrives."""
        parser = EventFrameParser()

        assert parser.feed('event: update\ndata: {"a": ') == []
        assert parser.feed("1}") == []
        assert parser.feed("\n") == [EventFrame("update", {"a": 1})]

    def test_crlf_line_endings(self):
        parser = EventFrameParser()
        text = frame("update", "hi", newline="\r\n") + frame("result", "bye", newline="\r\n")

        assert parser.feed(text) == [
            EventFrame("update", "hi"),
            EventFrame("result", "bye"),
        ]

    def test_crlf_split_inside_terminator(self):
        parser = EventFrameParser()

        assert parser.feed('event: update\r\ndata: "x"\r') == []
        assert parser.feed("\n") == [EventFrame("update", "x")]

    def test_skips_unrelated_lines(self):
        """Blank lines, comments and orphan event lines are ignored."""
        parser = EventFrameParser()
        text = ": keep-alive\n\nevent: orphan\nevent: update\ndata: 1\n\n"

        assert parser.feed(text) == [EventFrame("update", 1)]
        assert parser.remainder == ""

    def test_remainder_drops_dead_lines(self):
        parser = EventFrameParser()
        parser.feed("garbage\nmore garbage\nevent: upd")

        assert parser.remainder == "event: upd"

    def test_malformed_payload_raises(self):
        parser = EventFrameParser()

        with pytest.raises(MalformedFramePayloadError) as exc_info:
            parser.feed("event: update\ndata: {not json\n")

        assert exc_info.value.event_type == "update"
        assert exc_info.value.data == "{not json"

    def test_malformed_payload_after_good_frames_is_deferred(self):
        """Frames before a bad payload are returned before the error."""
        parser = EventFrameParser()

        frames = parser.feed(frame("update", 1) + "event: update\ndata: {oops\n")

        assert frames == [EventFrame("update", 1)]
        with pytest.raises(MalformedFramePayloadError):
            parser.check()
        parser.check()

    def test_finish_completes_unterminated_data_line(self):
        """End of input terminates a final data line that has no line break."""
        parser = EventFrameParser()

        assert parser.feed('event: result\ndata: {"a": 2}') == []
        assert parser.finish() == [EventFrame("result", {"a": 2})]
        assert parser.remainder == ""

    def test_finish_drops_cut_off_payload(self):
        parser = EventFrameParser()

        assert parser.finish('event: result\ndata: {"a": ') == []
        assert parser.remainder == ""

    def test_finish_still_raises_for_complete_bad_line(self):
        parser = EventFrameParser()

        with pytest.raises(MalformedFramePayloadError):
            parser.finish("event: update\ndata: {oops\n")


class TestMessageSequencer:
    """Tests for MessageSequencer."""

    @pytest.mark.asyncio
    async def test_yields_frames_and_releases_at_end(self):
        body = RecordingStream([frame("update", 1).encode(), frame("update", 2).encode()])
        sequencer = MessageSequencer(streamed_response(body))

        frames = [f async for f in sequencer]

        assert [f.payload for f in frames] == [1, 2]
        assert sequencer.released
        assert body.close_count == 1

    @pytest.mark.asyncio
    async def test_truncated_trailing_frame_is_discarded(self):
        text = frame("update", {"a": 1}) + 'event: result\ndata: {"a"'
        body = RecordingStream([text.encode()])
        sequencer = MessageSequencer(streamed_response(body))

        frames = [f async for f in sequencer]

        assert frames == [EventFrame("update", {"a": 1})]
        assert body.close_count == 1

    @pytest.mark.asyncio
    async def test_empty_body(self):
        body = RecordingStream([])
        sequencer = MessageSequencer(streamed_response(body))

        assert [f async for f in sequencer] == []
        assert sequencer.released

    @pytest.mark.asyncio
    async def test_aclose_is_idempotent(self):
        body = RecordingStream([frame("update", 1).encode(), frame("update", 2).encode()])
        sequencer = MessageSequencer(streamed_response(body))

        async with sequencer:
            assert (await sequencer.__anext__()).payload == 1
        await sequencer.aclose()

        assert body.close_count == 1
        assert body.reads == 1
        with pytest.raises(StopAsyncIteration):
            await sequencer.__anext__()

    @pytest.mark.asyncio
    async def test_read_error_becomes_transport_error(self):
        body = RecordingStream(
            [frame("update", 1).encode(), frame("update", 2).encode()], fail_after=1
        )
        sequencer = MessageSequencer(streamed_response(body))

        assert (await sequencer.__anext__()).payload == 1
        with pytest.raises(TransportError):
            await sequencer.__anext__()
        assert sequencer.released
        assert body.close_count == 1


class TestChatStream:
    """Tests for ChatStream."""

    @pytest.mark.asyncio
    async def test_intermediate_and_result_messages(self):
        """N updates followed by a result yield N+1 messages in order."""
        stream, body = chat_stream(
            b'event: update\ndata: {"a":1}\nevent: result\ndata: {"a":2}\n'
        )

        messages = await stream.collect()

        assert messages == [{"a": 1}, {"a": 2}]
        assert stream.result == {"a": 2}
        assert body.close_count == 1

    @pytest.mark.asyncio
    async def test_many_updates_one_per_chunk(self):
        updates = [frame("chunk", f"token-{i}").encode() for i in range(5)]
        stream, _ = chat_stream(*updates, frame("result", {"bot": {"text": "done"}}).encode())

        messages = await stream.collect()

        assert len(messages) == 6
        assert messages[:5] == [f"token-{i}" for i in range(5)]
        assert messages[-1] == {"bot": {"text": "done"}}

    @pytest.mark.asyncio
    async def test_stops_at_result_without_reading_further(self):
        stream, body = chat_stream(
            frame("update", 1).encode(),
            frame("result", 2).encode(),
            frame("update", 3).encode(),
        )

        messages = await stream.collect()

        assert messages == [1, 2]
        assert body.reads == 2
        assert body.close_count == 1

    @pytest.mark.asyncio
    async def test_ignores_frames_after_result_in_same_chunk(self):
        stream, _ = chat_stream((frame("result", 1) + frame("update", 2)).encode())

        assert await stream.collect() == [1]

    @pytest.mark.asyncio
    async def test_missing_result_ends_cleanly(self):
        stream, body = chat_stream(frame("update", 1).encode(), frame("update", 2).encode())

        messages = await stream.collect()

        assert messages == [1, 2]
        assert stream.result is None
        assert body.close_count == 1

    @pytest.mark.asyncio
    async def test_frame_split_across_chunks(self):
        stream, _ = chat_stream(
            b"event: update\n",
            b'data: {"a":1}\n',
            b"event: res",
            b'ult\ndata: {"a"',
            b":2}\n",
        )

        assert await stream.collect() == [{"a": 1}, {"a": 2}]

    @pytest.mark.asyncio
    async def test_multibyte_character_split_across_chunks(self):
        raw = frame("result", "世界").encode()
        cut = raw.index("世".encode()) + 2
        split_stream, _ = chat_stream(raw[:cut], raw[cut:])
        whole_stream, _ = chat_stream(raw)

        assert await split_stream.collect() == await whole_stream.collect() == ["世界"]

    @pytest.mark.asyncio
    async def test_early_exit_releases_once(self):
        """Leaving the block after message 1 of 3 releases the reader once."""
        stream, body = chat_stream(
            frame("update", 1).encode(),
            frame("update", 2).encode(),
            frame("result", 3).encode(),
        )

        received = []
        async with stream:
            async for message in stream:
                received.append(message)
                break

        assert received == [1]
        assert stream.released
        assert body.close_count == 1
        assert body.reads == 1

        await stream.aclose()
        assert body.close_count == 1
        assert [m async for m in stream] == []

    @pytest.mark.asyncio
    async def test_exception_in_consumer_releases(self):
        stream, body = chat_stream(frame("update", 1).encode(), frame("result", 2).encode())

        with pytest.raises(RuntimeError):
            async with stream:
                async for _ in stream:
                    raise RuntimeError("consumer failed")

        assert body.close_count == 1

    @pytest.mark.asyncio
    async def test_malformed_payload_fails_iteration(self):
        """Messages before a bad payload stay valid; iteration then raises."""
        stream, body = chat_stream(
            (frame("update", {"a": 1}) + "event: update\ndata: {oops\n").encode(),
            frame("result", 2).encode(),
        )

        received = []
        with pytest.raises(MalformedFramePayloadError):
            async with stream:
                async for message in stream:
                    received.append(message)

        assert received == [{"a": 1}]
        assert stream.released
        assert body.close_count == 1

    @pytest.mark.asyncio
    async def test_transport_failure_mid_stream(self):
        stream, body = chat_stream(
            frame("update", 1).encode(), frame("result", 2).encode(), fail_after=1
        )

        received = []
        with pytest.raises(TransportError) as exc_info:
            async for message in stream:
                received.append(message)

        assert received == [1]
        assert isinstance(exc_info.value.__cause__, httpx.ReadError)
        assert body.close_count == 1

    @pytest.mark.asyncio
    async def test_unterminated_result_frame_is_delivered(self):
        """A body ending right after the result JSON still yields the result."""
        stream, body = chat_stream(
            b'event: update\ndata: {"a":1}\nevent: result\ndata: {"a":2}'
        )

        messages = await stream.collect()

        assert messages == [{"a": 1}, {"a": 2}]
        assert stream.result == {"a": 2}
        assert body.close_count == 1

    @pytest.mark.asyncio
    async def test_unterminated_result_split_across_chunks(self):
        stream, _ = chat_stream(b"event: result\r\n", b'data: "done"')

        assert await stream.collect() == ["done"]
        assert stream.result == "done"

    @pytest.mark.asyncio
    async def test_iteration_outside_context_warns(self, caplog):
        stream, body = chat_stream(
            frame("update", 1).encode(),
            frame("update", 2).encode(),
            frame("result", 3).encode(),
        )

        with caplog.at_level(logging.WARNING, logger="dialoqbase_sdk.streaming"):
            async for _ in stream:
                break

        assert "outside 'async with'" in caplog.text
        assert not stream.released
        await stream.aclose()
        assert body.close_count == 1

    @pytest.mark.asyncio
    async def test_iteration_inside_context_does_not_warn(self, caplog):
        stream, _ = chat_stream(frame("result", 1).encode())

        with caplog.at_level(logging.WARNING, logger="dialoqbase_sdk.streaming"):
            assert await stream.collect() == [1]

        assert "outside 'async with'" not in caplog.text
