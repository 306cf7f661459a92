r"""
Helmsman option descriptors.

Overview
- Option: parsed representation of one declared flag, built from a single
  specification string such as "-p, --pepper", "-C, --chdir <path>",
  "-c|--cheese [type]" or "--no-sauce".
- Arity: how many values an occurrence of the option carries
  • NONE      → boolean flag, nothing is consumed
  • OPTIONAL  → a value may follow unless the next token looks like an option
  • REQUIRED  → a value must follow, parsing fails otherwise

Specification string
- fragments are separated by spaces, commas or pipes ("[ ,|]+").
- when there is more than one fragment and the second one is not a value marker,
  the first fragment is the short flag; the next one is always the long flag.
- "<name>" anywhere marks a required value, "[name]" an optional one.
- "-no-" anywhere marks a negation flag ("--no-cheese" sets cheese to False).

Derived names
- name: the long flag without its leading dashes ("--dry-run" → "dry-run").
- key: the canonical key used by the bound value store; the negation marker is
  stripped and hyphens become underscores ("--no-dry-run" → "dry_run").

Quick example:
    >>> option = Option("-C, --chdir <path>", "change the working directory")
    >>> option.short, option.long, option.arity, option.key
    ('-C', '--chdir', <Arity.REQUIRED: 2>, 'chdir')
"""
import re
from enum import IntEnum

from .utils import Unset


class Arity(IntEnum):
    """
    value arity of an option occurrence.
    """
    NONE = 0
    OPTIONAL = 1
    REQUIRED = 2


class Option:
    """
    Named option specification (short/long spelling, value arity, negation, mandatory-ness).

    Properties
    - flags: the declaration string as written (used in messages and help).
    - short: "-x" or None; long: always present.
    - arity: Arity.NONE / OPTIONAL / REQUIRED.
    - negate: True for "--no-*" options.
    - mandatory: the option must hold a value before an action may run.
    - description: help text.
    - default: declared default value (Unset when none); set at registration.
    - coerce: Unset or callable(raw, previous) -> value.

    Notes
    - spellings are immutable once parsed; mandatory/default/coerce are wired
      by Command.option() at registration time.
    """
    __slots__ = ("_flags", "_short", "_long", "_arity", "_negate", "mandatory", "description", "default", "coerce")

    def __init__(self, flags, description="", /, *, mandatory=False):
        if not isinstance(flags, str):
            raise TypeError("option 'flags' must be a string")
        elif not (flags := flags.strip()):
            raise ValueError("option 'flags' cannot be empty")
        if not isinstance(description, str):
            raise TypeError("option 'description' must be a string")

        self._flags = flags
        if "<" in flags:
            self._arity = Arity.REQUIRED
        elif "[" in flags:
            self._arity = Arity.OPTIONAL
        else:
            self._arity = Arity.NONE
        self._negate = "-no-" in flags

        fragments = re.split(r"[ ,|]+", flags)
        self._short = None
        if len(fragments) > 1 and not re.match(r"[\[<]", fragments[1]):
            self._short = fragments.pop(0)
        self._long = fragments.pop(0)

        if not self._long.startswith("-") or re.match(r"[\[<]", self._long):
            raise ValueError(f"option {flags!r} must declare a flag")

        self.mandatory = bool(mandatory)
        self.description = description
        self.default = Unset
        self.coerce = Unset

    @property
    def flags(self):
        return self._flags

    @property
    def short(self):
        return self._short

    @property
    def long(self):
        return self._long

    @property
    def arity(self):
        return self._arity

    @property
    def negate(self):
        return self._negate

    @property
    def required(self):
        return self._arity is Arity.REQUIRED

    @property
    def optional(self):
        return self._arity is Arity.OPTIONAL

    @property
    def name(self):
        """
        option name: the long flag without its leading dashes.
        """
        return re.sub(r"^--?", "", self._long)

    @property
    def key(self):
        """
        canonical key: negation marker stripped, hyphens turned into underscores.
        """
        return re.sub(r"^no-", "", self.name).replace("-", "_")

    def matches(self, token, /):
        """
        True when the token spells this option exactly (short or long form).
        """
        return token is not None and token in (self._short, self._long)

    def __repr__(self):
        return f"option(flags={self._flags!r}, key={self.key!r}, arity={self._arity.name.lower()}, mandatory={self.mandatory!r})"


__all__ = (
    "Arity",
    "Option",
)
