import pytest

import scriptvm
import vmtest


@pytest.fixture
def clock():
    """Clock moved by hand."""
    return vmtest.FakeClock()


@pytest.fixture
def stage(clock):
    """Empty stage on a fake clock, errors contained in their process."""
    stage = scriptvm.Stage(clock=clock)
    stage.clock = clock
    return stage


@pytest.fixture
def sprite(stage):
    """Sprite named Kitty on the stage."""
    return stage.add_sprite(scriptvm.Sprite("Kitty"))
