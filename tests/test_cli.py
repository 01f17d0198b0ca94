"""Test the command-line runner."""

import subprocess
import sys
from pathlib import Path

import pytest

from scriptvm import cli

EXAMPLES = Path(__file__).parent.parent / "examples"


def test_cli_hello_example():
    """Run hello.blocks as a separate interpreter."""
    result = subprocess.run(
        [sys.executable, "-m", "scriptvm", str(EXAMPLES / "hello.blocks")],
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0, f"CLI failed: {result.stderr}"
    assert "Kitty says: Hello, world" in result.stdout
    assert "Kitty says: count 3" in result.stdout


def test_cli_loop_example(capsys):
    assert cli.main([str(EXAMPLES / "loop.blocks")]) == 0
    assert "Counter thinks: total 15" in capsys.readouterr().out


@pytest.mark.parametrize(
    "answers, expected",
    [
        ([], "Kitty says: Hi "),
        (["--answer", "Ada"], "Kitty says: Hi Ada"),
    ],
    ids=["unanswered", "answered"],
)
def test_cli_answers(capsys, answers, expected):
    assert cli.main([str(EXAMPLES / "ask.blocks"), *answers]) == 0
    out = capsys.readouterr().out
    assert "Kitty says: What is your name?" in out
    assert expected in out


def test_cli_script_error(capsys):
    """A failing script is reported and sets the exit status."""
    assert cli.main([str(EXAMPLES / "error.blocks")]) == 1
    out = capsys.readouterr().out
    assert "Kitty says: about to fail" in out
    assert (
        "error: VariableError: a variable of name 'ghost' does not exist"
        in out
    )


def test_cli_parse_error(tmp_path, capsys):
    path = tmp_path / "broken.blocks"
    path.write_text('(sprite "S")\n(sprite "S")\n')
    assert cli.main([str(path)]) == 1
    err = capsys.readouterr().err
    assert err.startswith(f"{path}:2: ")
    assert "duplicate sprite" in err


def test_cli_ticks_limit(tmp_path, capsys):
    """A script that never ends is cut off after the given ticks."""
    path = tmp_path / "forever.blocks"
    path.write_text('(sprite "S" (when go (do_forever [(turn 1)])))')
    assert cli.main([str(path), "--ticks", "5"]) == 0


def test_cli_tree(capsys):
    assert cli.main([str(EXAMPLES / "hello.blocks"), "--tree"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("start:")
    assert "  define:" in out
    assert "  sprite:" in out


def test_cli_missing_file(tmp_path):
    with pytest.raises(SystemExit) as info:
        cli.main([str(tmp_path / "nowhere.blocks")])
    assert info.value.code == 2


def test_cli_no_args():
    """Running without arguments shows usage."""
    result = subprocess.run(
        [sys.executable, "-m", "scriptvm"],
        capture_output=True,
        text=True,
    )
    assert result.returncode != 0
    assert "usage" in result.stderr.lower()


def test_console_surface_prompts():
    """Questions asked by the stage are printed before they are answered."""
    lines = []

    class Out:
        def write(self, text):
            lines.append(text)

    surface = cli.ConsoleSurface(["yes"], out=Out())
    prompter = surface.create_prompter("Ready?")
    assert prompter.is_done
    assert prompter.answer == "yes"
    assert "".join(lines) == "? Ready?\n"
