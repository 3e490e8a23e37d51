import stat
import tempfile
from pathlib import Path

import pytest

from elmwrap.models.config import get_settings

FIXTURES_DIR = Path(__file__).parent / "fixtures"
COMPILED_WORKER = FIXTURES_DIR / "compiled" / "BasicWorker.js"

# Just enough of `elm make` for the wrapper: argument parsing, diagnostics on
# stderr for the broken fixtures, and a canned artifact written to --output.
FAKE_ELM = """#!/bin/sh
if [ "$1" != "make" ]; then
  echo "unexpected subcommand: $1" >&2
  exit 2
fi
shift
output=""
sources=""
while [ $# -gt 0 ]; do
  case "$1" in
    --output) output="$2"; shift 2 ;;
    --report|--docs) shift 2 ;;
    +RTS)
      while [ $# -gt 0 ] && [ "$1" != "-RTS" ]; do shift; done
      shift ;;
    --*) shift ;;
    *) sources="$sources $1"; shift ;;
  esac
done
for source in $sources; do
  if [ ! -f "$source" ]; then
    cat >&2 <<MSG
-- MODULE NOT FOUND ------------------------------------------------------------

I cannot find $source
MSG
    exit 1
  fi
  case "$source" in
    *Bad.elm)
      cat >&2 <<MSG
-- PARSE ERROR ------------------------------------------------------- $source

I got stuck while parsing the main definition:

4|     text "this is missing a closing quote
MSG
      exit 1 ;;
    *TypeError.elm)
      cat >&2 <<MSG
-- TYPE MISMATCH ----------------------------------------------------- $source

The 2nd argument to (+) is not what I expect:

7|     text (1 + "two")
MSG
      exit 1 ;;
  esac
done
echo "Success! Compiled 1 module."
if [ -n "$output" ]; then
  cat "@COMPILED@" > "$output"
fi
"""


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    for name in ("ELMWRAP_PATH_TO_ELM", "ELMWRAP_NODE_PATH", "ELMWRAP_VERBOSE", "ELMWRAP_LANG"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def temp_dir(tmp_path, monkeypatch):
    """A private directory for the temporary artifacts elmwrap allocates."""
    path = tmp_path / "tmp"
    path.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(path))
    return path


@pytest.fixture
def fixtures_dir():
    return FIXTURES_DIR


@pytest.fixture
def fake_elm(tmp_path):
    """Path to an executable that behaves like `elm make` on the fixtures."""
    path = tmp_path / "bin" / "elm"
    path.parent.mkdir()
    path.write_text(FAKE_ELM.replace("@COMPILED@", str(COMPILED_WORKER)))
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)
