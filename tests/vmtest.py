"""Unit testing quality of life and readability helpers for the evaluator."""

import pytest

import scriptvm


def params(names, **cases):
    """Simplified parametrize decorator for test cases.

    Args:
        names: Space or comma-separated string of parameter names
        **cases: Named test cases where key is the test ID and value is
                either a single argument or tuple of arguments

    Returns:
        pytest.mark.parametrize decorator with 'key' as first parameter

    Example:
        @params("a b expected", add=(5, 3, 8))
        def test_sum(key, a, b, expected):
            assert report("report_sum", a, b) == expected
    """
    keys = list(cases)
    params = []
    for k, v in cases.items():
        if isinstance(v, tuple):
            params.append((k, *v))
        else:
            params.append((k, v))

    columns = names.replace(",", " ").split()
    columns.insert(0, "key")
    return pytest.mark.parametrize(columns, params, ids=keys)


class FakeClock:
    """Clock that only moves when a test advances it."""

    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def load(source, **settings):
    """Load notation onto a stage driven by a FakeClock.

    Keyword arguments become Config fields.
    """
    clock = FakeClock()
    config = scriptvm.Config(**settings)
    stage = scriptvm.load(source, config=config, clock=clock)
    stage.clock = clock
    return stage


def run(stage, ticks=500):
    """Step a stage until its scripts finish, advancing the clock each tick."""
    return stage.run(max_ticks=ticks, sleep=stage.clock.advance)


def green_flag(source, ticks=500, **settings):
    """Load notation, click the green flag and run to completion."""
    stage = load(source, **settings)
    stage.fire_green_flag_event()
    run(stage, ticks)
    return stage


def sprite_vars(source, ticks=500, **settings):
    """Variables of the first sprite after a green flag run."""
    stage = green_flag(source, ticks, **settings)
    return stage.sprites[0].variables.vars


def report(selector, *values):
    """Answer of a primitive block with literal inputs."""
    block = scriptvm.Block(
        selector, "reporter", [scriptvm.InputSlot(value) for value in values]
    )
    return evaluate(block)


def evaluate(block, receiver=None):
    """Run a reporter to completion in a lone process and answer its value.

    Errors propagate instead of being shown on the block.
    """
    if receiver is None:
        receiver = scriptvm.Sprite("Tester")
    block.owner = receiver
    threads = scriptvm.ThreadManager(config=scriptvm.Config(catch_errors=False))
    process = scriptvm.Process(block, threads)
    while process.is_running():
        process.run_step()
    inputs = process.home_context.inputs
    return inputs[0] if inputs else None
