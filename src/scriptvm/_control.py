"""Control flow primitives.

Control blocks never call back into the evaluator. They rewrite the context
chain of their process and return, and the evaluator carries on from
whatever frame is current.

After a primitive returns, the evaluator pops the current frame. A primitive
that has pushed new frames therefore finishes by pushing an empty frame for
that pop to remove. To run again on a later step, a primitive pushes a
`do_yield` frame above its own frame so the block is evaluated again once the
yield is popped.
"""

__all__ = ["ControlPrimitives"]

import logging

import scriptvm

log = logging.getLogger(__name__)


class ControlPrimitives:
    """Conditionals, loops, waits, messages and stopping for a Process."""

    @scriptvm.primitive
    def do_if(self, condition, body=None):
        boundary = self.context.boundary()
        outer = self.context.outer_context
        self.pop_context()
        if condition and body is not None:
            self.push_context(body.block_sequence(), outer)
            self.context.restore_boundary(boundary)
        self.push_context()

    @scriptvm.primitive
    def do_if_else(self, condition, body=None, alternative=None):
        boundary = self.context.boundary()
        outer = self.context.outer_context
        self.pop_context()
        branch = body if condition else alternative
        if branch is not None:
            self.push_context(branch.block_sequence(), outer)
            self.context.restore_boundary(boundary)
        self.push_context()

    @scriptvm.primitive
    def do_warp(self, body=None):
        """Run the body without yielding between steps."""
        boundary = self.context.boundary()
        outer = self.context.outer_context
        self.pop_context()
        if body is not None:
            receiver = self.home_context.receiver
            if receiver is not None and hasattr(receiver, "start_warp"):
                receiver.start_warp()
            self.push_context("do_yield")
            self.context.restore_boundary(boundary)
            if not self.is_atomic:
                self.push_context("do_stop_warping")
            self.push_context(body.block_sequence(), outer)
            self.is_atomic = True
        self.push_context()

    def do_stop_warping(self):
        self.pop_context()
        self.end_warp()

    def end_warp(self):
        self.is_atomic = False
        receiver = self.home_context.receiver
        if receiver is not None and hasattr(receiver, "end_warp"):
            receiver.end_warp()

    @scriptvm.primitive
    def do_forever(self, body=None):
        self.push_context("do_yield")
        if body is not None:
            self.push_context(body.block_sequence())
        self.push_context()

    @scriptvm.primitive
    def do_repeat(self, counter, body=None):
        """Run the body counter times.

        The remaining count is kept as the evaluated first input of a fresh
        frame for this block, so each pass starts from a clean frame.
        """
        count = scriptvm.to_number(counter)
        if scriptvm.is_nan(count) or count < 1:
            return None
        block = self.context.expression
        boundary = self.context.boundary()
        outer = self.context.outer_context
        self.pop_context()
        self.push_context(block, outer)
        self.context.restore_boundary(boundary)
        self.context.add_input(count - 1)
        self.push_context("do_yield")
        if body is not None:
            self.push_context(body.block_sequence())
        self.push_context()

    @scriptvm.primitive
    def do_until(self, goal, body=None):
        if goal:
            return None
        self.context.inputs = []
        self.push_context("do_yield")
        if body is not None:
            self.push_context(body.block_sequence())
        self.push_context()

    @scriptvm.primitive
    def do_wait_until(self, goal):
        if goal:
            return None
        self.context.inputs = []
        self.push_context("do_yield")
        self.push_context()

    # Interpolated primitives run again every step until their time is up

    @scriptvm.primitive
    def do_wait(self, secs):
        if self.context.start_time is None:
            self.context.start_time = self.clock()
        if self.clock() - self.context.start_time >= scriptvm.to_number(secs):
            return None
        self._resume_later()

    @scriptvm.primitive
    def do_glide(self, secs, end_x, end_y):
        receiver = self.home_context.receiver
        duration = scriptvm.to_number(secs)
        if self.context.start_time is None:
            self.context.start_time = self.clock()
            self.context.start_value = (receiver.x_position(), receiver.y_position())
        elapsed = self.clock() - self.context.start_time
        if elapsed >= duration:
            receiver.goto_xy(end_x, end_y)
            return None
        receiver.glide(duration, end_x, end_y, elapsed, self.context.start_value)
        self._resume_later()

    @scriptvm.primitive
    def do_say_for(self, data, secs):
        receiver = self.home_context.receiver
        if self.context.start_time is None:
            self.context.start_time = self.clock()
            receiver.bubble(data)
        if self.clock() - self.context.start_time >= scriptvm.to_number(secs):
            receiver.stop_talking()
            return None
        self._resume_later()

    @scriptvm.primitive
    def do_think_for(self, data, secs):
        receiver = self.home_context.receiver
        if self.context.start_time is None:
            self.context.start_time = self.clock()
            receiver.do_think(data)
        if self.clock() - self.context.start_time >= scriptvm.to_number(secs):
            receiver.stop_talking()
            return None
        self._resume_later()

    @scriptvm.primitive
    def do_play_sound_until_done(self, name):
        if self.context.active_audio is None:
            self.context.active_audio = self.home_context.receiver.play_sound(name)
            if self.context.active_audio is None:
                return None
        audio = self.context.active_audio
        if audio.ended or audio.terminated:
            return None
        self._resume_later()

    @scriptvm.primitive
    def do_stop_all_sounds(self):
        stage = self.stage()
        if stage is None:
            return None
        for process in stage.threads.processes:
            if process.context is not None and process.context.active_audio:
                process.pop_context()
        stage.stop_all_active_sounds()

    @scriptvm.primitive
    def do_ask(self, question):
        """Wait for an answer typed into a prompter.

        Only one question is on screen at a time, a process asking while
        another prompter is active waits its turn.
        """
        stage = self.stage()
        receiver = self.home_context.receiver
        is_stage = receiver is stage
        if self.prompter is None:
            if stage.active_prompter() is None:
                if not is_stage:
                    receiver.bubble(question, is_question=True)
                self.prompter = self.surface.create_prompter(
                    question if is_stage else None
                )
                stage.prompter = self.prompter
        elif self.prompter.is_done:
            stage.last_answer = self.prompter.answer
            self.prompter.destroy()
            self.prompter = None
            if not is_stage:
                receiver.stop_talking()
            return None
        self._resume_later()

    @scriptvm.primitive
    def report_last_answer(self):
        stage = self.stage()
        return stage.last_answer if stage is not None else ""

    # Messages

    @scriptvm.primitive
    def do_broadcast(self, message):
        self.broadcast(message)

    def broadcast(self, message):
        """Start every script listening for a message.

        Returns:
            (list) Processes started or already running for the message
        """
        stage = self.stage()
        message = scriptvm.to_text(message)
        if stage is None or message == "":
            return []
        processes = []
        for block in stage.all_hat_blocks_for(message):
            processes.append(
                stage.threads.start_process(block, stage.is_thread_safe)
            )
        log.debug("broadcast %r started %d script(s)", message, len(processes))
        return processes

    @scriptvm.primitive
    def do_broadcast_and_wait(self, message):
        if self.context.active_sends is None:
            self.context.active_sends = self.broadcast(message)
        self.context.active_sends = [
            process for process in self.context.active_sends if process.is_running()
        ]
        if not self.context.active_sends:
            return None
        self._resume_later()

    # Stopping

    @scriptvm.primitive
    def do_stop(self):
        self.stop()

    @scriptvm.primitive
    def do_stop_all(self):
        stage = self.stage()
        if stage is None:
            self.stop()
            return None
        stage.keys_pressed.clear()
        stage.threads.stop_all()
        for receiver in stage.all_receivers():
            receiver.stop_talking()

    def _resume_later(self):
        self.push_context("do_yield")
        self.push_context()
