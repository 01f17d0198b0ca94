"""Runtime settings for processes and the scheduler"""

__all__ = ["Config", "load_config"]

import dataclasses
import os


@dataclasses.dataclass
class Config:
    """Settings shared by a thread manager and the processes it runs.

    Attributes:
        timeout: (float) Seconds a process may run before yielding in one tick
        catch_errors: (bool) Contain script errors inside the failing process
        thread_safe: (bool) Hat-started scripts keep running when retriggered
        dev_mode: (bool) Enable the `log` debugging primitive
        tick_interval: (float) Seconds between scheduler ticks for the cli
    """

    timeout: float = 0.5
    catch_errors: bool = True
    thread_safe: bool = False
    dev_mode: bool = False
    tick_interval: float = 1 / 60


def load_config(env=None):
    """Build a Config from SCRIPTVM_* environment variables.

    Durations are given in milliseconds. Values that do not parse keep their
    default.

    Args:
        env: (dict | None) Environment mapping, defaults to os.environ

    Returns:
        (Config) Loaded settings
    """
    if env is None:
        env = os.environ
    config = Config()
    config.timeout = _millis(env.get("SCRIPTVM_TIMEOUT_MS"), config.timeout)
    config.tick_interval = _millis(
        env.get("SCRIPTVM_TICK_MS"), config.tick_interval
    )
    config.catch_errors = _flag(env.get("SCRIPTVM_CATCH_ERRORS"), config.catch_errors)
    config.thread_safe = _flag(env.get("SCRIPTVM_THREAD_SAFE"), config.thread_safe)
    config.dev_mode = _flag(env.get("SCRIPTVM_DEV_MODE"), config.dev_mode)
    return config


def _millis(text, default):
    if text is None:
        return default
    try:
        value = float(text)
    except ValueError:
        return default
    if value < 0:
        return default
    return value / 1000


def _flag(text, default):
    if text is None:
        return default
    text = text.strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    return default
