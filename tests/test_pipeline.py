"""Tests for the request pipeline and its steps."""

import json
from contextlib import AsyncExitStack
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
from multidict import CIMultiDict

from extensible_request.errors import AbnormalTerminationError, DecodeError, RequestError
from extensible_request.models import EventType, RequestOptions
from extensible_request.pipeline import RequestContext, RequestPipeline, build_pipeline
from extensible_request.pipeline.steps import (
    BufferStep,
    DecodeStep,
    PrepareStep,
    SendStep,
    StatusStep,
    parse_content_type,
)


def make_ctx(options, raw=None, body=b""):
    ctx = RequestContext(options=options, exit_stack=AsyncExitStack())
    ctx.raw = raw
    ctx.body = body
    return ctx


class TestRequestPipeline:
    """Tests for RequestPipeline."""

    @pytest.mark.asyncio
    async def test_runs_steps_in_order(self, options):
        """Test that each step sees the context returned by the previous one."""
        seen = []

        def make_step(name):
            step = MagicMock()
            step.name = name

            async def execute(ctx, emit=None):
                seen.append(name)
                return ctx

            step.execute = execute
            return step

        pipeline = RequestPipeline(steps=[make_step("a"), make_step("b")])
        ctx = await pipeline.execute(options)

        assert seen == ["a", "b"]
        assert ctx.error is None

    @pytest.mark.asyncio
    async def test_failure_short_circuits(self, options):
        """Test that a raising step stops the pipeline and is recorded."""
        error = RequestError(404, "Not Found")
        failing = MagicMock()
        failing.name = "status"
        failing.execute = AsyncMock(side_effect=error)
        after = MagicMock()
        after.name = "buffer"
        after.execute = AsyncMock()
        events = []

        pipeline = RequestPipeline(steps=[failing, after])
        ctx = await pipeline.execute(options, emit=events.append, attempt=2)

        assert ctx.error is error
        assert ctx.failed
        assert ctx.failed_step == "status"
        after.execute.assert_not_called()
        assert [e.type for e in events] == [EventType.REQUEST_FAILED]
        assert events[0].status_code == 404
        assert events[0].attempt == 2

    @pytest.mark.asyncio
    async def test_resources_released_after_run(self, options):
        """Test that contexts entered on the exit stack are closed."""
        closed = []

        class Resource:
            async def __aenter__(self):
                return self

            async def __aexit__(self, *exc):
                closed.append(True)

        step = MagicMock()
        step.name = "open"

        async def execute(ctx, emit=None):
            await ctx.exit_stack.enter_async_context(Resource())
            return ctx

        step.execute = execute
        await RequestPipeline(steps=[step]).execute(options)

        assert closed == [True]

    def test_add_step(self):
        pipeline = RequestPipeline(steps=[])
        assert pipeline.add_step(PrepareStep()) is pipeline
        assert len(pipeline.steps) == 1

    def test_build_pipeline_order(self):
        pipeline = build_pipeline(transport=MagicMock())
        assert [step.name for step in pipeline.steps] == ["prepare", "send", "status", "buffer", "decode"]


class TestPrepareStep:
    """Tests for PrepareStep."""

    @pytest.mark.asyncio
    async def test_sets_content_length_from_body(self):
        options = RequestOptions(
            method="POST",
            host="example.com",
            body='{"x":1}',
            headers={"content-type": "application/json", "CONTENT-LENGTH": "1"},
        )
        ctx = await PrepareStep().execute(make_ctx(options))

        headers = CIMultiDict(ctx.options.headers)
        assert headers.getall("content-length") == ["7"]
        assert headers["content-type"] == "application/json"

    @pytest.mark.asyncio
    async def test_zero_without_body(self, options):
        ctx = await PrepareStep().execute(make_ctx(options))
        assert ctx.options.header("content-length") == "0"


class TestSendStep:
    """Tests for SendStep."""

    @pytest.mark.asyncio
    async def test_populates_raw_response(self, options, raw_response, scripted_transport):
        raw = raw_response(200, b"ok")
        transport = scripted_transport([lambda: raw])
        events = []

        async with AsyncExitStack() as stack:
            ctx = RequestContext(options=options, exit_stack=stack)
            ctx = await SendStep(transport).execute(ctx, events.append)

        assert ctx.raw is raw
        assert transport.calls == [options]
        assert events[0].type == EventType.REQUEST_STARTED

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, options, scripted_transport):
        transport = scripted_transport([aiohttp.ClientConnectionError("refused")])

        async with AsyncExitStack() as stack:
            ctx = RequestContext(options=options, exit_stack=stack)
            with pytest.raises(aiohttp.ClientConnectionError):
                await SendStep(transport).execute(ctx)


class TestStatusStep:
    """Tests for StatusStep."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [200, 201, 204, 299])
    async def test_success_passes(self, options, raw_response, status):
        raw = raw_response(status)
        ctx = await StatusStep().execute(make_ctx(options, raw))
        assert ctx.raw is raw
        assert raw.stream.discarded is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,phrase",
        [(301, "Moved Permanently"), (401, "Unauthorized"), (500, "Internal Server Error"), (504, "Gateway Timeout")],
    )
    async def test_failure_raises_and_discards(self, options, raw_response, status, phrase):
        """Test that non-2xx responses are drained and rejected."""
        raw = raw_response(status, b"<html>error</html>", "text/html")

        with pytest.raises(RequestError) as exc_info:
            await StatusStep().execute(make_ctx(options, raw))

        assert exc_info.value.status_code == status
        assert exc_info.value.message == phrase
        assert raw.stream.discarded is True

    @pytest.mark.asyncio
    async def test_nonstandard_status_has_empty_message(self, options, raw_response):
        with pytest.raises(RequestError) as exc_info:
            await StatusStep().execute(make_ctx(options, raw_response(599)))
        assert exc_info.value.message == ""


class TestBufferStep:
    """Tests for BufferStep."""

    @pytest.mark.asyncio
    async def test_accumulates_chunks(self, options, raw_response):
        raw = raw_response(200, b"a longer body in chunks", chunk_size=3)
        ctx = await BufferStep().execute(make_ctx(options, raw))
        assert ctx.body == b"a longer body in chunks"

    @pytest.mark.asyncio
    async def test_incomplete_stream_raises(self, options, raw_response):
        """Test that a stream cut short fails with AbnormalTerminationError."""
        raw = raw_response(200, b"partial", complete=False)

        with pytest.raises(AbnormalTerminationError) as exc_info:
            await BufferStep().execute(make_ctx(options, raw))

        assert str(exc_info.value) == "Connection terminated while message was being received"

    @pytest.mark.asyncio
    async def test_mid_stream_error_propagates(self, options, raw_response):
        raw = raw_response(200, b"partial", error=aiohttp.ClientConnectionError("reset"))

        with pytest.raises(aiohttp.ClientConnectionError):
            await BufferStep().execute(make_ctx(options, raw))


class TestParseContentType:
    """Tests for parse_content_type."""

    @pytest.mark.parametrize(
        "header,expected",
        [
            (None, ("text/plain", "utf-8")),
            ("", ("text/plain", "utf-8")),
            ("application/json", ("application/json", "utf-8")),
            ("Application/JSON; charset=ISO-8859-1", ("application/json", "iso-8859-1")),
            ("text/html; charset=\"utf-16\"", ("text/html", "utf-16")),
            ("text/plain; format=flowed; charset=latin-1", ("text/plain", "latin-1")),
            ("text/plain; charset=", ("text/plain", "utf-8")),
            ("text/plain; charset=no-such-codec", ("text/plain", "utf-8")),
            ("text/plain; charset=hex", ("text/plain", "utf-8")),
            ("  TEXT/CSV  ", ("text/csv", "utf-8")),
        ],
    )
    def test_parse(self, header, expected):
        assert parse_content_type(header) == expected


class TestDecodeStep:
    """Tests for DecodeStep."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "value",
        [
            {"msg": "all good"},
            [1, 2, {"nested": [True, None]}],
            "just a string",
            42,
        ],
    )
    async def test_json_round_trip(self, options, raw_response, value):
        """Test that JSON bodies decode to the source structure."""
        body = json.dumps(value).encode("utf-8")
        raw = raw_response(200, body, "application/json")

        ctx = await DecodeStep().execute(make_ctx(options, raw, body))

        assert ctx.result.body == value
        assert ctx.result.status_code == 200
        assert ctx.result.is_json

    @pytest.mark.asyncio
    async def test_json_variant_media_type(self, options, raw_response):
        body = b'{"op": "add"}'
        raw = raw_response(200, body, "application/json-patch+json; charset=utf-8")

        ctx = await DecodeStep().execute(make_ctx(options, raw, body))

        assert ctx.result.body == {"op": "add"}
        assert ctx.media_type == "application/json-patch+json"

    @pytest.mark.asyncio
    async def test_json_in_declared_charset(self, options, raw_response):
        body = json.dumps({"name": "café"}, ensure_ascii=False).encode("utf-16")
        raw = raw_response(200, body, "application/json; charset=utf-16")

        ctx = await DecodeStep().execute(make_ctx(options, raw, body))

        assert ctx.result.body == {"name": "café"}

    @pytest.mark.asyncio
    async def test_text_body(self, options, raw_response):
        body = b"all good"
        raw = raw_response(200, body, "text/plain")

        ctx = await DecodeStep().execute(make_ctx(options, raw, body))

        assert ctx.result.body == "all good"
        assert ctx.result.media_type == "text/plain"
        assert not ctx.result.is_json

    @pytest.mark.asyncio
    async def test_text_in_declared_charset(self, options, raw_response):
        body = "café".encode("latin-1")
        raw = raw_response(200, body, "text/plain; charset=ISO-8859-1")

        ctx = await DecodeStep().execute(make_ctx(options, raw, body))

        assert ctx.result.body == "café"
        assert ctx.result.encoding == "iso-8859-1"

    @pytest.mark.asyncio
    async def test_missing_content_type_is_text(self, options, raw_response):
        body = b'{"looks": "like json"}'
        raw = raw_response(200, body, content_type=None)

        ctx = await DecodeStep().execute(make_ctx(options, raw, body))

        assert ctx.result.body == '{"looks": "like json"}'
        assert ctx.result.media_type == "text/plain"

    @pytest.mark.asyncio
    async def test_invalid_json_raises_decode_error(self, options, raw_response):
        body = b"{not json"
        raw = raw_response(200, body, "application/json")

        with pytest.raises(DecodeError):
            await DecodeStep().execute(make_ctx(options, raw, body))

    @pytest.mark.asyncio
    async def test_json_in_wrong_charset_raises_decode_error(self, options, raw_response):
        body = b'{"a": "\xff"}'
        raw = raw_response(200, body, "application/json; charset=utf-8")

        with pytest.raises(DecodeError):
            await DecodeStep().execute(make_ctx(options, raw, body))

    @pytest.mark.asyncio
    async def test_emits_completed(self, options, raw_response):
        body = b"ok"
        raw = raw_response(201, body)
        events = []

        await DecodeStep().execute(make_ctx(options, raw, body), events.append)

        assert events[0].type == EventType.REQUEST_COMPLETED
        assert events[0].status_code == 201
        assert events[0].bytes_received == 2
