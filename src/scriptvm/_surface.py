"""Display hooks used by the evaluator.

The evaluator never draws anything itself. It reports highlights, result and
error bubbles, speech and questions through a Surface. The default surface
records that state on the blocks and sprites involved so a host, or a test,
can inspect it.
"""

__all__ = ["Surface", "Prompter"]

import logging

import scriptvm

log = logging.getLogger(__name__)


class Prompter:
    """Pending answer to a question asked by a script.

    Args:
        question: (str | None) Text shown with the input field

    Attributes:
        question: (str | None) Text shown with the input field
        answer: (str) Text entered so far
        is_done: (bool) The answer was confirmed
        is_destroyed: (bool) The prompter was dismissed
    """

    __slots__ = ("question", "answer", "is_done", "is_destroyed")

    def __init__(self, question=None):
        self.question = question
        self.answer = ""
        self.is_done = False
        self.is_destroyed = False

    def __repr__(self):
        return f"Prompter<{self.question!r}>"

    def confirm(self, answer):
        self.answer = answer
        self.is_done = True

    def destroy(self):
        self.is_destroyed = True


class Surface:
    """Headless surface recording display state on the model objects."""

    def add_highlight(self, block):
        block.is_highlighted = True

    def remove_highlight(self, block):
        block.is_highlighted = False

    def add_error_highlight(self, block):
        block.has_error = True

    def show_bubble(self, element, value):
        """Show a result or message next to a block."""
        element.bubble = value
        log.debug("bubble on %r: %s", element, scriptvm.to_text(value))

    def show_speech(self, receiver, data, is_thought=False):
        """Show or clear (data None) what a sprite says or thinks."""
        if data is None:
            log.debug("%s stops talking", receiver.name)
        else:
            verb = "thinks" if is_thought else "says"
            log.debug("%s %s %s", receiver.name, verb, scriptvm.to_text(data))

    def create_prompter(self, question):
        log.debug("asking %r", question)
        return Prompter(question)
