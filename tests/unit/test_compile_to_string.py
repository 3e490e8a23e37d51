import asyncio
import os
from unittest.mock import AsyncMock

import pytest

import elmwrap
from elmwrap.capture import temporary_output
from elmwrap.exceptions import (
    CompilationError,
    ElmParseError,
    ElmTypeError,
    ExecutableNotFoundError,
    ProcessSpawnError,
    UnknownOptionError,
)

pytestmark = pytest.mark.skipif(os.name != "posix", reason="fake compiler is a shell script")


@pytest.fixture
def opts(fake_elm, fixtures_dir):
    return {"verbose": True, "cwd": fixtures_dir, "pathToElm": fake_elm}


def test_compile_to_string_returns_compiled_code(opts, fixtures_dir, temp_dir):
    result = asyncio.run(elmwrap.compile_to_string(fixtures_dir / "Parent.elm", opts))

    assert "scope['Elm']" in result
    assert list(temp_dir.iterdir()) == []


def test_compile_to_string_reports_errors_on_bad_syntax(opts, fixtures_dir, temp_dir):
    with pytest.raises(CompilationError) as exc:
        asyncio.run(elmwrap.compile_to_string(fixtures_dir / "Bad.elm", opts))

    assert isinstance(exc.value, ElmParseError)
    assert "Compilation failed" in str(exc.value)
    assert "PARSE ERROR" in str(exc.value)
    assert exc.value.exit_code == 1
    assert list(temp_dir.iterdir()) == []


def test_compile_to_string_reports_type_errors(opts, fixtures_dir, temp_dir):
    with pytest.raises(ElmTypeError) as exc:
        asyncio.run(elmwrap.compile_to_string(fixtures_dir / "TypeError.elm", opts))

    assert "Compilation failed" in str(exc.value)
    assert "TYPE MISMATCH" in str(exc.value)
    assert list(temp_dir.iterdir()) == []


def test_compile_to_string_rejects_unrecognized_argument(opts, fixtures_dir, temp_dir, monkeypatch):
    spawn = AsyncMock()
    monkeypatch.setattr(asyncio, "create_subprocess_exec", spawn)

    with pytest.raises(UnknownOptionError):
        asyncio.run(elmwrap.compile_to_string(fixtures_dir / "Parent.elm", {**opts, "foo": "bar"}))

    spawn.assert_not_called()
    assert list(temp_dir.iterdir()) == []


def test_compile_to_string_rejects_output_option(opts, fixtures_dir):
    with pytest.raises(UnknownOptionError, match="output"):
        asyncio.run(elmwrap.compile_to_string(fixtures_dir / "Parent.elm", {**opts, "output": "x.js"}))


def test_compile_to_string_checks_executable_before_allocating(fixtures_dir, temp_dir):
    opts = {"cwd": fixtures_dir, "pathToElm": "/path/to/non-existing/elm"}

    with pytest.raises(ExecutableNotFoundError):
        asyncio.run(elmwrap.compile_to_string(fixtures_dir / "Parent.elm", opts))

    assert list(temp_dir.iterdir()) == []


def test_compile_to_string_cleans_up_when_spawn_fails(opts, fixtures_dir, temp_dir, monkeypatch):
    monkeypatch.setattr(
        "elmwrap.capture.spawn_async",
        AsyncMock(side_effect=ProcessSpawnError("boom", "elm")),
    )

    with pytest.raises(ProcessSpawnError):
        asyncio.run(elmwrap.compile_to_string(fixtures_dir / "Parent.elm", opts))

    assert list(temp_dir.iterdir()) == []


def test_compile_to_string_works_when_run_multiple_times(opts, fixtures_dir, temp_dir, monkeypatch):
    from elmwrap import capture

    seen_outputs = []
    real_spawn = capture.spawn_async

    async def recording_spawn(executable, args, options):
        seen_outputs.append(str(options.output))
        return await real_spawn(executable, args, options)

    monkeypatch.setattr(capture, "spawn_async", recording_spawn)

    async def run_all():
        calls = [elmwrap.compile_to_string(fixtures_dir / "Parent.elm", opts) for _ in range(10)]
        return await asyncio.gather(*calls)

    results = asyncio.run(run_all())

    assert len(results) == 10
    assert all(isinstance(result, str) and result for result in results)
    assert len(set(seen_outputs)) == 10
    assert list(temp_dir.iterdir()) == []


def test_compile_to_string_uses_requested_suffix(opts, fixtures_dir, temp_dir, monkeypatch):
    from elmwrap import capture

    seen_outputs = []
    real_spawn = capture.spawn_async

    async def recording_spawn(executable, args, options):
        seen_outputs.append(options.output)
        return await real_spawn(executable, args, options)

    monkeypatch.setattr(capture, "spawn_async", recording_spawn)

    asyncio.run(elmwrap.compile_to_string(fixtures_dir / "Parent.elm", opts, suffix=".html"))

    assert seen_outputs[0].suffix == ".html"
    assert seen_outputs[0].name.startswith("elmwrap-")


def test_compile_to_string_verbose_passes_output_through(opts, fixtures_dir, capsys):
    asyncio.run(elmwrap.compile_to_string(fixtures_dir / "Parent.elm", opts))

    out = capsys.readouterr().out
    assert "Running " in out
    assert "Success! Compiled 1 module." in out


def test_compile_to_string_sync(opts, fixtures_dir, temp_dir):
    result = elmwrap.compile_to_string_sync(fixtures_dir / "Parent.elm", opts)

    assert "scope['Elm']" in result
    assert list(temp_dir.iterdir()) == []


def test_compile_to_string_sync_raises_classified_error(opts, fixtures_dir, temp_dir):
    with pytest.raises(ElmParseError, match="Compilation failed"):
        elmwrap.compile_to_string_sync(fixtures_dir / "Bad.elm", opts)

    assert list(temp_dir.iterdir()) == []


def test_temporary_output_removes_file_on_error(temp_dir):
    with pytest.raises(RuntimeError):
        with temporary_output() as path:
            assert path.exists()
            assert path.parent == temp_dir
            raise RuntimeError("interrupted")

    assert not path.exists()


def test_temporary_output_paths_are_unique(temp_dir):
    with temporary_output() as first, temporary_output() as second:
        assert first != second
        assert first.suffix == ".js"
