"""Sprites and the stage, the receivers scripts run for.

Only the state scripts observe is modeled: positions, speech, sounds, keys,
the timer and the last answer. Drawing is left to whatever host embeds the
stage.
"""

__all__ = ["Scriptable", "Sprite", "Stage", "Sound"]

import logging
import math
import time

import scriptvm

log = logging.getLogger(__name__)

# Messages used by the built-in hat blocks
GO_MESSAGE = "__shout__go__"
CLICK_MESSAGE = "__click__"


class Sound:
    """A sound being played.

    Args:
        name: (str) Sound name
        duration: (float) Length in seconds
        clock: (callable) Clock used to tell when playback ends

    Attributes:
        terminated: (bool) Playback was stopped early
    """

    __slots__ = ("name", "duration", "clock", "started", "terminated")

    def __init__(self, name, duration, clock):
        self.name = name
        self.duration = duration
        self.clock = clock
        self.started = clock()
        self.terminated = False

    def __repr__(self):
        return f"Sound<{self.name}>"

    @property
    def ended(self):
        return self.clock() - self.started >= self.duration

    def stop(self):
        self.terminated = True


class Scriptable:
    """Common part of sprites and the stage.

    Args:
        name: (str) Name shown in messages
        stage: (Stage | None) Stage this object lives on

    Attributes:
        variables: (VariableFrame) Variables owned by this object
        scripts: (list) Top blocks of the object's scripts
        sounds: (dict) Sound name to duration in seconds
        talk: (tuple | None) What is being said as (data, is_thought)
        picked_up: (bool) Held by the user, its scripts pause
        is_warped: (bool) Inside a warp block
    """

    def __init__(self, name, stage=None):
        self.name = name
        self.stage = stage
        self.variables = scriptvm.VariableFrame(owner=self)
        self.scripts = []
        self.sounds = {}
        self.talk = None
        self.picked_up = False
        self.is_warped = False

    def __repr__(self):
        return f"{type(self).__name__}<{self.name}>"

    def add_script(self, block):
        block.owner = self
        self.scripts.append(block)
        return block

    def is_picked_up(self):
        return self.picked_up

    def all_hat_blocks_for(self, message):
        """Hat blocks started by a message, the green flag or a click."""
        hats = []
        for block in self.scripts:
            if not block.is_hat():
                continue
            if block.selector == "receive_message":
                if scriptvm.to_text(block.args[0].evaluate()) == message:
                    hats.append(block)
            elif block.selector == "receive_go" and message == GO_MESSAGE:
                hats.append(block)
            elif block.selector == "receive_click" and message == CLICK_MESSAGE:
                hats.append(block)
        return hats

    def all_hat_blocks_for_key(self, key):
        return [
            block
            for block in self.scripts
            if block.selector == "receive_key"
            and scriptvm.to_text(block.args[0].evaluate()) == key
        ]

    def start_warp(self):
        self.is_warped = True

    def end_warp(self):
        self.is_warped = False

    def _surface(self):
        if self.stage is None:
            return None
        return self.stage.threads.surface

    def _clock(self):
        if self.stage is None:
            return time.monotonic
        return self.stage.threads.clock

    # Looks

    @scriptvm.primitive
    def bubble(self, data, is_thought=False, is_question=False):
        """Say something, shown until stop_talking."""
        self.talk = (data, is_thought)
        surface = self._surface()
        if surface is not None:
            surface.show_speech(self, data, is_thought)

    @scriptvm.primitive
    def do_think(self, data):
        self.bubble(data, is_thought=True)

    @scriptvm.primitive
    def stop_talking(self):
        if self.talk is None:
            return
        self.talk = None
        surface = self._surface()
        if surface is not None:
            surface.show_speech(self, None)

    # Sound

    def play_sound(self, name):
        """Start a sound and answer it, None when there is no such sound."""
        name = scriptvm.to_text(name)
        if name not in self.sounds:
            return None
        sound = Sound(name, self.sounds[name], self._clock())
        if self.stage is not None:
            self.stage.active_sounds.append(sound)
        log.debug("%s plays %s", self.name, name)
        return sound

    @scriptvm.primitive
    def do_play_sound(self, name):
        self.play_sound(name)


class Sprite(Scriptable):
    """Object on the stage with a position and heading.

    Attributes:
        x: (float) Horizontal position
        y: (float) Vertical position
        heading: (float) Direction in degrees, 90 points right
    """

    def __init__(self, name, stage=None):
        super().__init__(name, stage)
        self.x = 0
        self.y = 0
        self.heading = 90
        if stage is not None:
            self.variables.parent_frame = stage.variables

    # Motion

    @scriptvm.primitive
    def forward(self, steps):
        distance = scriptvm.to_number(steps)
        angle = math.radians(self.heading)
        self.goto_xy(
            self.x + distance * math.sin(angle),
            self.y + distance * math.cos(angle),
        )

    @scriptvm.primitive
    def turn(self, degrees):
        self.set_heading(self.heading + scriptvm.to_number(degrees))

    @scriptvm.primitive
    def turn_left(self, degrees):
        self.set_heading(self.heading - scriptvm.to_number(degrees))

    @scriptvm.primitive
    def set_heading(self, degrees):
        heading = scriptvm.to_number(degrees) % 360
        self.heading = heading if heading > 0 else heading + 360

    @scriptvm.primitive
    def goto_xy(self, x, y):
        self.x = _rounded(scriptvm.to_number(x))
        self.y = _rounded(scriptvm.to_number(y))

    @scriptvm.primitive
    def set_x_position(self, x):
        self.goto_xy(x, self.y)

    @scriptvm.primitive
    def set_y_position(self, y):
        self.goto_xy(self.x, y)

    @scriptvm.primitive
    def change_x_position(self, delta):
        self.goto_xy(self.x + scriptvm.to_number(delta), self.y)

    @scriptvm.primitive
    def change_y_position(self, delta):
        self.goto_xy(self.x, self.y + scriptvm.to_number(delta))

    @scriptvm.primitive
    def x_position(self):
        return self.x

    @scriptvm.primitive
    def y_position(self):
        return self.y

    @scriptvm.primitive
    def direction(self):
        return self.heading

    def glide(self, duration, end_x, end_y, elapsed, start):
        """Move part of the way from start toward the end point."""
        fraction = max(min(elapsed / duration, 1), 0) if duration else 1
        start_x, start_y = start
        end_x = scriptvm.to_number(end_x)
        end_y = scriptvm.to_number(end_y)
        self.goto_xy(
            start_x + (end_x - start_x) * fraction,
            start_y + (end_y - start_y) * fraction,
        )


class Stage(Scriptable):
    """The stage: global variables, sprites, and the scheduler.

    Args:
        name: (str) Name shown in messages
        config: (Config | None) Settings for the scheduler
        surface: (Surface | None) Display hooks
        clock: (callable | None) Seconds as a float

    Attributes:
        sprites: (list) Sprites on the stage
        threads: (ThreadManager) Scheduler for every script on the stage
        keys_pressed: (set) Keys currently held down
        last_answer: (str) Answer to the last question asked
        prompter: (Prompter | None) Last question put on screen
        active_sounds: (list) Sounds started and not yet finished
        is_thread_safe: (bool) Retriggered hat scripts keep running
    """

    def __init__(self, name="Stage", config=None, surface=None, clock=None):
        super().__init__(name)
        self.stage = self
        self.sprites = []
        self.threads = scriptvm.ThreadManager(self, surface, config, clock)
        self.is_thread_safe = self.threads.config.thread_safe
        self.keys_pressed = set()
        self.last_answer = ""
        self.prompter = None
        self.active_sounds = []
        self.timer_start = self.threads.clock()

    def add_sprite(self, sprite):
        sprite.stage = self
        sprite.variables.parent_frame = self.variables
        self.sprites.append(sprite)
        return sprite

    def sprite_named(self, name):
        for sprite in self.sprites:
            if sprite.name == name:
                return sprite
        return None

    def all_receivers(self):
        return self.sprites + [self]

    def all_hat_blocks_for(self, message):
        """Hats listening for a message on every sprite and the stage."""
        hats = []
        for receiver in self.sprites:
            hats.extend(Scriptable.all_hat_blocks_for(receiver, message))
        hats.extend(Scriptable.all_hat_blocks_for(self, message))
        return hats

    def active_prompter(self):
        if self.prompter is not None and not self.prompter.is_destroyed:
            return self.prompter
        return None

    # Events

    def fire_green_flag_event(self):
        return self._start_all(self.all_hat_blocks_for(GO_MESSAGE))

    def fire_click_event(self, receiver):
        return self._start_all(Scriptable.all_hat_blocks_for(receiver, CLICK_MESSAGE))

    def fire_key_event(self, key):
        """Press a key: start its hat scripts and hold it until released."""
        self.keys_pressed.add(key)
        hats = []
        for receiver in self.all_receivers():
            hats.extend(receiver.all_hat_blocks_for_key(key))
        return self._start_all(hats)

    def release_key(self, key):
        self.keys_pressed.discard(key)

    def _start_all(self, hats):
        return [
            self.threads.start_process(block, self.is_thread_safe) for block in hats
        ]

    def stop_all_scripts(self):
        self.keys_pressed.clear()
        self.threads.stop_all()
        self.stop_all_active_sounds()
        for receiver in self.all_receivers():
            receiver.stop_talking()

    def stop_all_active_sounds(self):
        for sound in self.active_sounds:
            sound.stop()
        self.active_sounds = []

    # Timer

    def reset_timer(self):
        self.timer_start = self.threads.clock()

    def get_timer(self):
        """Seconds since the timer was reset, in tenths."""
        return round(self.threads.clock() - self.timer_start, 1)

    # Running

    def step(self):
        self.active_sounds = [
            sound
            for sound in self.active_sounds
            if not (sound.ended or sound.terminated)
        ]
        self.threads.step()

    def run(self, max_ticks=None, sleep=None):
        """Step until no script is left running.

        Args:
            max_ticks: (int | None) Give up after this many ticks
            sleep: (callable | None) Called with the tick interval between
                ticks, for running against a real clock

        Returns:
            (int) Number of ticks run
        """
        ticks = 0
        while self.threads.processes:
            if max_ticks is not None and ticks >= max_ticks:
                break
            self.step()
            ticks += 1
            if sleep is not None and self.threads.processes:
                sleep(self.threads.config.tick_interval)
        return ticks


def _rounded(value):
    if isinstance(value, float):
        value = round(value, 9)
        if value.is_integer():
            return int(value)
    return value
