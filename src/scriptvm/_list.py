"""List values produced by list blocks"""

__all__ = ["List"]

import scriptvm


class List:
    """Mutable list with 1-based positions.

    Positions given as text are read as numbers. Reading a position outside
    the list gives empty text rather than an error.

    Args:
        items: (iterable | None) Initial contents

    Attributes:
        contents: (list) Items in order
    """

    __slots__ = ("contents",)

    def __init__(self, items=None):
        self.contents = list(items) if items is not None else []

    def __repr__(self):
        return f"List<{', '.join(repr(item) for item in self.contents)}>"

    def __iter__(self):
        return iter(self.contents)

    def __len__(self):
        return len(self.contents)

    def length(self):
        return len(self.contents)

    def as_array(self):
        return list(self.contents)

    def cons(self, car, cdr):
        """Fill this list with car followed by the items of cdr."""
        self.contents = [car]
        if isinstance(cdr, List):
            self.contents.extend(cdr.contents)
        return self

    def cdr(self):
        return List(self.contents[1:])

    def add(self, element, index=None):
        """Insert before the 1-based index, or append when index is omitted."""
        if index is None:
            self.contents.append(element)
            return
        idx = _position(index)
        idx = max(1, min(idx, len(self.contents) + 1))
        self.contents.insert(idx - 1, element)

    def remove(self, index):
        idx = _position(index)
        if 1 <= idx <= len(self.contents):
            del self.contents[idx - 1]

    def clear(self):
        self.contents = []

    def put(self, element, index):
        idx = _position(index)
        if 1 <= idx <= len(self.contents):
            self.contents[idx - 1] = element

    def at(self, index):
        idx = _position(index)
        if 1 <= idx <= len(self.contents):
            return self.contents[idx - 1]
        return ""

    def contains(self, element):
        return any(scriptvm.snap_equals(item, element) for item in self.contents)

    def as_text(self):
        """Items joined with spaces, nested lists flattened."""
        return " ".join(scriptvm.to_text(item) for item in self.contents)

    def equal_to(self, other):
        if len(self.contents) != len(other.contents):
            return False
        return all(
            scriptvm.snap_equals(a, b) for a, b in zip(self.contents, other.contents)
        )


def _position(index):
    number = scriptvm.to_number(index)
    if scriptvm.is_nan(number):
        return 0
    return int(number)
