"""Command-line runner for script notation files.

Usage:
    scriptvm <file.blocks>                  # Fire the green flag and run
    scriptvm <file.blocks> --ticks 100      # Give up after 100 ticks
    scriptvm <file.blocks> --answer Alice   # Answer the first question asked
    scriptvm <file.blocks> --tree           # Show the lark parse tree

Time is simulated unless --realtime is given, each tick advances the clock
by the configured tick interval without sleeping.
"""

__all__ = ["main", "ConsoleSurface", "TickClock", "prettylark"]

import argparse
import logging
import pathlib
import sys
import time

from lark import Token, Tree

import scriptvm

log = logging.getLogger(__name__)


class ConsoleSurface(scriptvm.Surface):
    """Surface printing speech, results and errors.

    Args:
        answers: (list | None) Answers handed to questions in order
        out: (file | None) Stream to print to, stdout by default

    Attributes:
        error_count: (int) Scripts stopped by an error
    """

    def __init__(self, answers=None, out=None):
        self.answers = list(answers or [])
        self.out = out
        self.error_count = 0
        self._error_pending = False

    def _print(self, text):
        print(text, file=self.out if self.out is not None else sys.stdout)

    def add_error_highlight(self, block):
        super().add_error_highlight(block)
        self.error_count += 1
        self._error_pending = True

    def show_bubble(self, element, value):
        super().show_bubble(element, value)
        text = scriptvm.to_text(value)
        if self._error_pending:
            self._error_pending = False
            self._print("error: " + text.replace("\n", ": "))
        else:
            self._print(f"=> {text}")

    def show_speech(self, receiver, data, is_thought=False):
        super().show_speech(receiver, data, is_thought)
        if data is None:
            return
        verb = "thinks" if is_thought else "says"
        self._print(f"{receiver.name} {verb}: {scriptvm.to_text(data)}")

    def create_prompter(self, question):
        prompter = super().create_prompter(question)
        if question is not None:
            self._print(f"? {scriptvm.to_text(question)}")
        if self.answers:
            prompter.confirm(self.answers.pop(0))
        else:
            log.warning("no answer left for question, answering empty text")
            prompter.confirm("")
        return prompter


class TickClock:
    """Clock that only moves when advanced, one call per scheduler tick."""

    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def prettylark(node, indent=0, show_positions=False):
    """Pretty-print a Lark parse tree.

    More readable than Lark's built-in pretty() for script notation.
    Shows tree structure with clear indentation and token values.
    """
    prefix = "  " * indent

    if isinstance(node, Token):
        pos = f" @{node.line}:{node.column}" if show_positions else ""
        print(f"{prefix}{node.type}: {node.value!r}{pos}")

    elif isinstance(node, Tree):
        pos = ""
        if show_positions and not node.meta.empty:
            pos = f" @{node.meta.line}:{node.meta.column}"

        if len(node.children) == 0:
            print(f"{prefix}{node.data}(){pos}")
        elif len(node.children) == 1 and isinstance(node.children[0], Token):
            # Compact single-token nodes
            print(f"{prefix}{node.data}: {node.children[0].value!r}{pos}")
        else:
            print(f"{prefix}{node.data}:{pos}")
            for child in node.children:
                if child is not None:
                    prettylark(child, indent + 1, show_positions)

    else:
        print(f"{prefix}??? {type(node).__name__}: {node!r}")


def main(argv=None):
    """Run a script notation file.

    Returns:
        (int) Exit status, 1 when a script or the notation had an error
    """
    parser = argparse.ArgumentParser(
        prog="scriptvm",
        description="Run block scripts written in script notation")
    parser.add_argument("source",
        help="Script notation file to run")
    parser.add_argument("--ticks", type=int, default=None,
        help="Stop after this many scheduler ticks")
    parser.add_argument("--timeout", type=float, default=None,
        help="Milliseconds a script may run in one tick before it is preempted")
    parser.add_argument("--no-catch", action="store_true",
        help="Raise script errors as Python exceptions")
    parser.add_argument("--answer", action="append", default=[],
        help="Answer for the next question asked, may be repeated")
    parser.add_argument("--realtime", action="store_true",
        help="Use the wall clock and sleep between ticks")
    parser.add_argument("--tree", action="store_true",
        help="Show the lark parse tree instead of running")
    parser.add_argument("--pos", action="store_true",
        help="Show line:column positions with --tree")
    parser.add_argument("-v", "--verbose", action="count", default=0,
        help="Log scheduler activity, twice for debug detail")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=max(logging.WARNING - 10 * args.verbose, logging.DEBUG),
        format="%(levelname)s %(name)s: %(message)s",
    )

    path = pathlib.Path(args.source)
    if not path.is_file():
        parser.error(f"no such file: {args.source}")
    source = path.read_text(encoding="utf-8")

    if args.tree:
        try:
            tree = scriptvm.parse_tree(source)
        except scriptvm.ParseError as error:
            return _parse_failed(path, source, error)
        prettylark(tree, show_positions=args.pos)
        return 0

    config = scriptvm.load_config()
    if args.timeout is not None:
        config.timeout = args.timeout / 1000
    if args.no_catch:
        config.catch_errors = False

    if args.realtime:
        clock = time.monotonic
        sleep = time.sleep
    else:
        clock = TickClock()
        sleep = clock.advance

    surface = ConsoleSurface(args.answer)
    try:
        stage = scriptvm.load(source, config=config, surface=surface, clock=clock)
    except scriptvm.ParseError as error:
        return _parse_failed(path, source, error)

    started = stage.fire_green_flag_event()
    log.info("started %d script(s)", len(started))
    ticks = stage.run(max_ticks=args.ticks, sleep=sleep)
    if stage.threads.processes:
        log.info("stopped after %d tick(s), %d script(s) still running",
            ticks, len(stage.threads.processes))
    else:
        log.info("finished after %d tick(s)", ticks)
    return 1 if surface.error_count else 0


def _parse_failed(path, source, error):
    location = ""
    if error.position is not None:
        line = source.count("\n", 0, error.position) + 1
        location = f":{line}"
    print(f"{path}{location}: {error.message}", file=sys.stderr)
    return 1
