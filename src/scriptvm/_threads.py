"""Scheduler for running processes"""

__all__ = ["ThreadManager"]

import logging
import time

import scriptvm

log = logging.getLogger(__name__)


class ThreadManager:
    """Runs every live process a little on each tick.

    Args:
        stage: (Stage | None) Stage owning the scheduler
        surface: (Surface | None) Display hooks, headless by default
        config: (Config | None) Settings, defaults when omitted
        clock: (callable | None) Seconds as a float, time.monotonic by default

    Attributes:
        processes: (list) Live processes in start order
    """

    def __init__(self, stage=None, surface=None, config=None, clock=None):
        self.stage = stage
        self.surface = surface if surface is not None else scriptvm.Surface()
        self.config = config if config is not None else scriptvm.Config()
        self.clock = clock if clock is not None else time.monotonic
        self.processes = []

    def __repr__(self):
        return f"ThreadManager<{len(self.processes)} processes>"

    def toggle_process(self, block):
        active = self.find_process(block)
        if active is not None:
            active.stop()
            return None
        return self.start_process(block)

    def start_process(self, block, is_thread_safe=False):
        """Start running the script a block belongs to.

        A script that is already running is left alone when thread safe,
        otherwise it is stopped and started again from the top.

        Args:
            block: (Block) Any block of the script
            is_thread_safe: (bool) Keep an active run instead of restarting

        Returns:
            (Process) The running process
        """
        active = self.find_process(block)
        top = block.top_block()
        if active is not None:
            if is_thread_safe:
                return active
            active.stop()
            self.remove_terminated_processes()
        self.surface.add_highlight(top)
        process = scriptvm.Process(top, self)
        self.processes.append(process)
        log.debug("started %r", process)
        return process

    def add_process(self, process):
        self.processes.append(process)

    def stop_all(self):
        for process in self.processes:
            process.stop()

    def stop_process(self, block):
        active = self.find_process(block)
        if active is not None:
            active.stop()

    def find_process(self, block):
        top = block.top_block()
        for process in self.processes:
            if process.top_block is top:
                return process
        return None

    def step(self):
        """Give each process one step, then drop the finished ones.

        Processes started during this tick get their first step on the next
        one. Scripts of a sprite the user is holding do not run.
        """
        for process in list(self.processes):
            receiver = process.home_context.receiver
            if receiver is not None and receiver.is_picked_up():
                continue
            process.run_step()
        self.remove_terminated_processes()

    def remove_terminated_processes(self):
        remaining = []
        for process in self.processes:
            if process.is_running():
                remaining.append(process)
                continue
            if process.context is not None:
                process.terminate()
            self._finish(process)
        self.processes = remaining

    def _finish(self, process):
        receiver = process.home_context.receiver
        if process.prompter is not None:
            process.prompter.destroy()
            process.prompter = None
            if receiver is not None:
                receiver.stop_talking()
        log.debug("finished %r error=%s", process, process.error_flag)
        top = process.top_block
        if process.error_flag or not isinstance(top, scriptvm.Block):
            return
        self.surface.remove_highlight(top)
        if top.is_reporter() and process.home_context.inputs:
            self.surface.show_bubble(top, process.home_context.inputs[0])
