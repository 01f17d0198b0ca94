"""Variable scopes.

A VariableFrame holds named values and links to the frame of its lexical
parent. Lookups that fail lexically can fall back to the dynamic caller chain
when a context is supplied. UpvarReference tables alias names visible to a
caller onto a variable stored in another frame.
"""

__all__ = ["VariableFrame", "UpvarReference"]

import scriptvm


class VariableFrame:
    """Mutable name to value scope.

    Args:
        parent_frame: (VariableFrame | None) Lexically enclosing frame
        owner: (object | None) Sprite or stage that declared the frame

    Attributes:
        vars: (dict) Values keyed by name, or by binding id for placeholders
        parent_frame: (VariableFrame | None) Lexical parent, shared
        owner: (object | None) Declaring receiver, None for temporaries
    """

    __slots__ = ("vars", "parent_frame", "owner")

    def __init__(self, parent_frame=None, owner=None):
        self.vars = {}
        self.parent_frame = parent_frame
        self.owner = owner

    def __repr__(self):
        return f"VariableFrame<{', '.join(str(n) for n in self.vars)}>"

    def copy(self):
        frame = VariableFrame(self.parent_frame, self.owner)
        frame.vars = dict(self.vars)
        return frame

    def find(self, name, parent_context=None):
        """Find the closest frame declaring a name.

        The lexical chain is searched first. If that fails and a context is
        given, each dynamic caller is tried in turn, searching the lexical
        chain of its own frame.

        Args:
            name: (str | int) Variable name or binding id
            parent_context: (Context | None) Dynamic caller to fall back on

        Returns:
            (VariableFrame) Frame holding the name

        Raises:
            VariableError: name is not declared anywhere reachable
        """
        frame = self._find_lexical(name)
        if frame is not None:
            return frame
        context = parent_context
        while context is not None:
            frame = context.variables._find_lexical(name)
            if frame is not None:
                return frame
            context = context.parent_context
        raise scriptvm.VariableError(
            f"a variable of name '{name}' does not exist in this context"
        )

    def _find_lexical(self, name):
        frame = self
        while frame is not None:
            if name in frame.vars:
                return frame
            frame = frame.parent_frame
        return None

    def get_var(self, name, parent_context=None):
        """Value of a variable, unset variables read as 0."""
        value = self.find(name, parent_context).vars[name]
        if value is None:
            return 0
        return value

    def set_var(self, name, value, parent_context=None):
        """Assign where the name is declared, numeric text becomes a number."""
        frame = self.find(name, parent_context)
        frame.vars[name] = _stored(value)

    def change_var(self, name, delta, parent_context=None):
        """Add delta to a variable, replacing it if it is not numeric."""
        frame = self.find(name, parent_context)
        frame.vars[name] = _changed(frame.vars[name], delta)

    def add_var(self, name, value=None):
        self.vars[name] = value

    def delete_var(self, name, parent_context=None):
        frame = self.find(name, parent_context)
        del frame.vars[name]

    def names(self):
        return list(self.vars)

    def all_names_dict(self):
        names = {}
        frame = self
        while frame is not None:
            for name in frame.vars:
                names[name] = name
            frame = frame.parent_frame
        return names

    def all_names(self):
        """Names visible through the lexical chain only."""
        return list(self.all_names_dict())


class UpvarReference:
    """Table of aliases onto variables living in other frames.

    Args:
        parent_frame: (UpvarReference | None) Enclosing alias table

    Attributes:
        vars: (dict) Alias name to (variable name, VariableFrame)
        parent_frame: (UpvarReference | None) Enclosing alias table
    """

    __slots__ = ("vars", "parent_frame")

    def __init__(self, parent_frame=None):
        self.vars = {}
        self.parent_frame = parent_frame

    def __repr__(self):
        return f"UpvarReference<{', '.join(str(n) for n in self.vars)}>"

    def add_reference(self, upvar_name, var_name, frame):
        self.vars[upvar_name] = (var_name, frame)

    def find(self, name):
        """Closest table aliasing a name, or None."""
        table = self
        while table is not None:
            if name in table.vars:
                return table
            table = table.parent_frame
        return None

    def get_var(self, name):
        var_name, frame = self.vars[name]
        value = frame.vars.get(var_name)
        if value is None:
            return 0
        return value

    def set_var(self, name, value):
        var_name, frame = self.vars[name]
        frame.vars[var_name] = _stored(value)

    def change_var(self, name, delta):
        var_name, frame = self.vars[name]
        frame.vars[var_name] = _changed(frame.vars.get(var_name), delta)

    def names(self):
        return list(self.vars)

    def all_names(self):
        names = {}
        table = self
        while table is not None:
            for name in table.vars:
                names[name] = name
            table = table.parent_frame
        return list(names)


def _stored(value):
    if isinstance(value, str):
        number = scriptvm.parse_float(value)
        if not scriptvm.is_nan(number):
            return number
    return value


def _changed(current, delta):
    delta = scriptvm.to_number(delta)
    value = scriptvm.parse_float(current)
    if scriptvm.is_nan(value):
        return delta
    return value + delta
