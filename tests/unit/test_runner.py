import sys

from findingaid.infrastructure.tools.runner import COMMAND_NOT_FOUND_EXIT_CODE, SubprocessRunner


def test_subprocess_runner_captures_exit_code_and_both_streams() -> None:
    script = "import sys; print('line one'); print('line two'); print('oops', file=sys.stderr); sys.exit(3)"

    result = SubprocessRunner().run(sys.executable, ["-c", script])

    assert result.exit_code == 3
    assert result.ok is False
    assert result.stdout_lines == ["line one", "line two"]
    assert result.stderr_lines == ["oops"]
    assert result.output_lines == ["line one", "line two", "oops"]


def test_subprocess_runner_reports_missing_binary() -> None:
    result = SubprocessRunner().run("definitely-not-a-real-findingaid-tool", ["--help"])

    assert result.exit_code == COMMAND_NOT_FOUND_EXIT_CODE
    assert result.stdout_lines == []
    assert result.stderr_lines
