import pytest

from elmwrap.capture import CompilationResult
from elmwrap.classify import classify_failure, failure_kind, unwrap_result
from elmwrap.exceptions import CompilationError, ElmParseError, ElmTypeError

PARSE_REPORT = "-- PARSE ERROR ------------ Bad.elm\n\nI got stuck while parsing.\n"
TYPE_REPORT = "-- TYPE MISMATCH ---------- TypeError.elm\n\nThe 2nd argument is not what I expect.\n"


@pytest.mark.parametrize(
    ("diagnostics", "kind"),
    [
        (PARSE_REPORT, "parse"),
        ("-- SYNTAX PROBLEM ----- Main.elm", "parse"),
        (TYPE_REPORT, "type"),
        ("-- MODULE NOT FOUND ----- Main.elm", "generic"),
        ("", "generic"),
    ],
)
def test_failure_kind(diagnostics, kind):
    assert failure_kind(diagnostics) == kind


def test_classify_failure_keeps_diagnostics_verbatim():
    error = classify_failure(CompilationResult(exit_code=1, stdout="", stderr=PARSE_REPORT))

    assert isinstance(error, ElmParseError)
    assert str(error) == "Compilation failed\n" + PARSE_REPORT
    assert error.diagnostics == PARSE_REPORT
    assert error.kind == "parse"


def test_classify_failure_type_mismatch():
    error = classify_failure(CompilationResult(exit_code=1, stdout="", stderr=TYPE_REPORT))

    assert isinstance(error, ElmTypeError)
    assert "TYPE MISMATCH" in str(error)


def test_classify_failure_generic():
    error = classify_failure(CompilationResult(exit_code=3, stdout="", stderr="elm: out of memory"))

    assert type(error) is CompilationError
    assert error.exit_code == 3
    assert error.kind == "generic"


def test_classify_failure_falls_back_to_stdout():
    error = classify_failure(CompilationResult(exit_code=1, stdout=TYPE_REPORT, stderr="  \n"))

    assert isinstance(error, ElmTypeError)
    assert error.diagnostics == TYPE_REPORT


def test_unwrap_result():
    assert unwrap_result(CompilationResult(exit_code=0, stdout="", stderr="", output="js")) == "js"

    with pytest.raises(ElmParseError):
        unwrap_result(CompilationResult(exit_code=1, stdout="", stderr=PARSE_REPORT))
