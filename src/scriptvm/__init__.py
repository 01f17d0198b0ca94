"""
Block script evaluator

Runs scripts of visual programming blocks: nested block trees evaluated by
resumable processes, first-class procedures with closures, upvars,
continuations, and a cooperative scheduler stepping every running script a
little at a time.
"""

__version__ = "0.1.0"


from ._error import *
from ._config import *
from ._internal import *
from ._values import *
from ._list import *
from ._variables import *
from ._block import *
from ._context import *
from ._surface import *
from ._control import *
from ._operators import *
from ._process import *
from ._threads import *
from ._stage import *
from ._parse import *
