"""Tests for the request handler in hotsass.middleware.sass."""

import gzip
import logging
from pathlib import Path

import pytest
from conftest import FakeEngine, set_mtime

from hotsass.config import LogRecord
from hotsass.errors import CompileError, ConfigurationError, SourceNotFound
from hotsass.http.request import Request
from hotsass.http.response import Response, StreamingResponse
from hotsass.middleware.sass import SassMiddleware, sass_middleware

FALLTHROUGH = Response(body="next handler", status=404)


class RecordingNext:
    """A ``next`` handler that remembers what reached it."""

    def __init__(self) -> None:
        self.requests: list[Request] = []

    async def __call__(self, request: Request) -> Response:
        self.requests.append(request)
        return FALLTHROUGH


async def _body(response: StreamingResponse) -> bytes:
    return b"".join(response.chunks)  # type: ignore[arg-type]


@pytest.fixture
def nxt() -> RecordingNext:
    return RecordingNext()


class TestFilter:
    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "OPTIONS"])
    async def test_other_methods_fall_through(
        self, make_config, nxt: RecordingNext, engine: FakeEngine, method: str
    ) -> None:
        mw = SassMiddleware(make_config())

        response = await mw(Request.build(method, "/site.css"), nxt)

        assert response is FALLTHROUGH
        assert len(nxt.requests) == 1
        assert engine.calls == []

    @pytest.mark.parametrize("path", ["/", "/site.scss", "/app.js", "/site.css/", "/site.cssx"])
    async def test_non_css_paths_fall_through(
        self, make_config, nxt: RecordingNext, engine: FakeEngine, path: str
    ) -> None:
        records: list[tuple] = []
        mw = SassMiddleware(make_config(log=lambda *a: records.append(a)))

        response = await mw(Request.build("GET", path), nxt)

        assert response is FALLTHROUGH
        assert engine.calls == []
        assert records == []

    async def test_filter_does_not_touch_filesystem(
        self, tmp_path: Path, nxt: RecordingNext, engine: FakeEngine
    ) -> None:
        from hotsass.config import SassConfig

        missing = tmp_path / "does-not-exist"
        mw = SassMiddleware(SassConfig.create(missing, sass=engine))

        await mw(Request.build("POST", "/x.css"), nxt)
        await mw(Request.build("GET", "/x.js"), nxt)
        await mw.drain()

        assert not missing.exists()
        assert len(nxt.requests) == 2


class TestCompileOnRequest:
    async def test_serves_compiled_css(self, make_config, nxt: RecordingNext, css_dir: Path) -> None:
        mw = SassMiddleware(make_config(max_age=3600, plugins=[]))

        response = await mw(Request.build("GET", "/site.css"), nxt)

        assert isinstance(response, Response)
        assert response.status == 200
        assert response.content_type == "text/css;charset=utf-8"
        assert response.header("Cache-Control") == "max-age=3600"
        assert response.text == "body{color:red}"
        assert nxt.requests == []

        await mw.drain()
        assert (css_dir / "site.css").read_text() == "body{color:red}"

    async def test_head_is_handled(self, make_config, nxt: RecordingNext) -> None:
        mw = SassMiddleware(make_config(plugins=[]))

        response = await mw(Request.build("HEAD", "/site.css"), nxt)

        assert response.content_type == "text/css;charset=utf-8"
        assert nxt.requests == []

    async def test_query_string_is_ignored_for_matching(self, make_config, nxt: RecordingNext) -> None:
        mw = SassMiddleware(make_config(plugins=[]))

        response = await mw(Request.build("GET", "/site.css?v=3"), nxt)

        assert response.text == "body{color:red}"

    async def test_prefix(self, make_config, nxt: RecordingNext, css_dir: Path) -> None:
        mw = SassMiddleware(make_config(prefix="/styles", plugins=[]))

        response = await mw(Request.build("GET", "/styles/pages/home.css"), nxt)
        await mw.drain()

        assert response.text == "h1{user-select:none}"
        assert (css_dir / "pages" / "home.css").exists()

    async def test_default_max_age_is_zero(self, make_config, nxt: RecordingNext) -> None:
        mw = SassMiddleware(make_config())

        response = await mw(Request.build("GET", "/site.css"), nxt)

        assert response.header("Cache-Control") == "max-age=0"

    async def test_default_plugins_run(self, make_config, nxt: RecordingNext) -> None:
        mw = SassMiddleware(make_config(browsers="chrome > 100"))

        response = await mw(Request.build("GET", "/pages/home.css"), nxt)

        assert response.text == "h1{-webkit-user-select:none;user-select:none}"

    async def test_legacy_hacks_survive_default_plugins(
        self, make_config, nxt: RecordingNext, src_dir: Path
    ) -> None:
        (src_dir / "legacy.scss").write_text(".clearfix{*zoom:1;user-select:none}")
        mw = SassMiddleware(make_config())

        response = await mw(Request.build("GET", "/legacy.css"), nxt)

        assert nxt.requests == []
        assert response.status == 200
        assert response.text == (
            ".clearfix{*zoom:1;-webkit-user-select:none;-moz-user-select:none;"
            "-ms-user-select:none;user-select:none}"
        )


class TestStaleness:
    async def test_second_request_falls_through(
        self, make_config, nxt: RecordingNext, engine: FakeEngine
    ) -> None:
        mw = SassMiddleware(make_config())

        first = await mw(Request.build("GET", "/site.css"), nxt)
        await mw.drain()
        second = await mw(Request.build("GET", "/site.css"), nxt)

        assert first.status == 200
        assert second is FALLTHROUGH
        assert len(engine.calls) == 1

    async def test_edited_source_recompiles(
        self, make_config, nxt: RecordingNext, src_dir: Path, css_dir: Path
    ) -> None:
        mw = SassMiddleware(make_config(plugins=[]))
        await mw(Request.build("GET", "/site.css"), nxt)
        await mw.drain()
        set_mtime(css_dir / "site.css", 50)

        (src_dir / "site.scss").write_text("body{color:blue}")
        response = await mw(Request.build("GET", "/site.css"), nxt)

        assert response.text == "body{color:blue}"

    async def test_force_always_compiles(
        self, make_config, nxt: RecordingNext, engine: FakeEngine
    ) -> None:
        mw = SassMiddleware(make_config(force=True))

        for _ in range(3):
            response = await mw(Request.build("GET", "/site.css"), nxt)
            await mw.drain()
            assert response.status == 200

        assert len(engine.calls) == 3
        assert nxt.requests == []


class TestFailures:
    async def test_missing_source_falls_through(
        self, make_config, nxt: RecordingNext, css_dir: Path
    ) -> None:
        records: list[tuple] = []
        mw = SassMiddleware(make_config(log=lambda *a: records.append(a)))

        response = await mw(Request.build("GET", "/nope.css"), nxt)

        assert response is FALLTHROUGH
        assert len(records) == 2
        request, record, error = records[-1]
        assert request.path == "/nope.css"
        assert isinstance(error, SourceNotFound)
        assert record.error is error
        assert not css_dir.exists()

    async def test_compile_error_falls_through(
        self, make_config, nxt: RecordingNext, src_dir: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        (src_dir / "broken.scss").write_text("@error 'x';")
        records: list[tuple] = []
        mw = SassMiddleware(make_config(log=lambda *a: records.append(a)))

        with caplog.at_level(logging.WARNING, logger="hotsass.middleware"):
            response = await mw(Request.build("GET", "/broken.css"), nxt)

        assert response is FALLTHROUGH
        assert isinstance(records[-1][2], CompileError)
        assert "falls through" in caplog.text

    async def test_errors_without_log_callback(self, make_config, nxt: RecordingNext) -> None:
        mw = SassMiddleware(make_config())

        response = await mw(Request.build("GET", "/nope.css"), nxt)

        assert response is FALLTHROUGH

    async def test_raising_log_callback_is_ignored(self, make_config, nxt: RecordingNext) -> None:
        def bad_log(*args: object) -> None:
            raise RuntimeError("callback bug")

        mw = SassMiddleware(make_config(log=bad_log, plugins=[]))

        response = await mw(Request.build("GET", "/site.css"), nxt)

        assert response.text == "body{color:red}"

    async def test_downstream_errors_are_not_swallowed(self, make_config, src_dir: Path) -> None:
        calls = 0

        async def exploding_next(request: Request) -> Response:
            nonlocal calls
            calls += 1
            raise RuntimeError("downstream")

        mw = SassMiddleware(make_config())

        with pytest.raises(RuntimeError, match="downstream"):
            await mw(Request.build("GET", "/nope.css"), exploding_next)
        assert calls == 1


class TestLogRecords:
    async def test_pre_compile_record(
        self, make_config, nxt: RecordingNext
    ) -> None:
        records: list[tuple] = []
        config = make_config(log=lambda *a: records.append(a))
        mw = SassMiddleware(config)

        await mw(Request.build("GET", "/site.css"), nxt)

        assert len(records) == 1
        request, record, error = records[0]
        assert request.path == "/site.css"
        assert record == LogRecord(config, config.src / "site.scss", config.css / "site.css")
        assert error is None


class TestGzip:
    async def test_gzip_response_and_file(self, make_config, nxt: RecordingNext, css_dir: Path) -> None:
        mw = SassMiddleware(make_config(gzip=True, plugins=[]))

        response = await mw(Request.build("GET", "/site.css"), nxt)

        assert isinstance(response, StreamingResponse)
        assert response.header("Content-Encoding") == "gzip"
        assert response.content_type == "text/css;charset=utf-8"
        assert gzip.decompress(await _body(response)) == b"body{color:red}"

        await mw.drain()
        gz_file = css_dir / "site.css.gz"
        assert gzip.decompress(gz_file.read_bytes()) == b"body{color:red}"
        assert (css_dir / "site.css").read_text() == "body{color:red}"


class TestWarmStart:
    async def test_start_logs_config_summary(
        self, make_config, caplog: pytest.LogCaptureFixture
    ) -> None:
        mw = SassMiddleware(make_config(init=True, max_age=30))

        with caplog.at_level(logging.DEBUG, logger="hotsass.middleware"):
            mw.start()
        await mw.drain()

        assert "starting warm cache walk" in caplog.text
        assert "'max_age': 30" in caplog.text

    async def test_start_runs_walk_when_init(self, make_config, css_dir: Path) -> None:
        mw = SassMiddleware(make_config(init=True, plugins=[]))

        task = mw.start()
        assert task is not None
        assert mw.start() is task
        await mw.drain()

        assert (css_dir / "site.css").exists()
        assert (css_dir / "pages" / "home.css").exists()

    async def test_start_without_init_does_nothing(self, make_config, engine: FakeEngine) -> None:
        mw = SassMiddleware(make_config())

        assert mw.start() is None
        await mw.drain()
        assert engine.calls == []


class TestFactory:
    async def test_factory_starts_walk_inside_loop(self, src_dir: Path, css_dir: Path, engine: FakeEngine) -> None:
        mw = sass_middleware(src_dir, css=css_dir, sass=engine, init=True, plugins=[])
        await mw.drain()

        assert (css_dir / "site.css").exists()

    def test_factory_outside_loop_defers_walk(self, src_dir: Path, engine: FakeEngine) -> None:
        mw = sass_middleware(src_dir, sass=engine, init=True)

        assert engine.calls == []
        assert mw.config.init is True

    def test_factory_validates(self, src_dir: Path) -> None:
        with pytest.raises(ConfigurationError):
            sass_middleware(src_dir, extname=".less")

    def test_factory_requires_src(self) -> None:
        with pytest.raises(ConfigurationError):
            sass_middleware(None)

    def test_instances_do_not_share_config(self, src_dir: Path, engine: FakeEngine) -> None:
        first = sass_middleware(src_dir, sass=engine, gzip=True, max_age=60)
        second = sass_middleware(src_dir, sass=engine)

        assert first.config.gzip is True
        assert second.config.gzip is False
        assert second.config.max_age == 0
