"""
Helmsman positional argument descriptors.

Overview
- Argument: one declared positional (name, required, variadic).
- parse_arguments(spec): turn a declaration such as "<source> [destination]" or
  "<file> [rest...]" into an ordered tuple of Argument.

Declaration rules
- "<name>" is required, "[name]" is optional; any other token is ignored.
- a trailing "..." on a name longer than three characters marks it variadic
  (zero or more operands collected into a list).
- placement of the variadic argument is not validated here: an argument list with
  a variadic in the middle is only rejected when an action is about to run.
"""
from typing import NamedTuple


class Argument(NamedTuple):
    """
    Positional argument specification.
    """
    name: str
    required: bool = False
    variadic: bool = False

    @property
    def spelling(self):
        """
        human readable form used in usage lines: <name>, [name], <name...>.
        """
        name = self.name + ("..." if self.variadic else "")
        return f"<{name}>" if self.required else f"[{name}]"


def parse_arguments(spec, /):
    """
    parse a positional declaration into Argument descriptors.

    parameters
    - spec: str | Iterable[str]
      either a space-separated string or already split tokens.

    returns
    - tuple[Argument, ...] in declaration order.
    """
    if isinstance(spec, str):
        spec = spec.split()

    arguments = []
    for token in spec:
        if not isinstance(token, str):
            raise TypeError("argument declarations must be strings")
        match token[:1]:
            case "<":
                required = True
            case "[":
                required = False
            case _:
                continue
        name = token[1:-1]
        variadic = False
        if len(name) > 3 and name.endswith("..."):
            variadic = True
            name = name[:-3]
        if name:
            arguments.append(Argument(name, required, variadic))
    return tuple(arguments)


__all__ = (
    "Argument",
    "parse_arguments",
)
