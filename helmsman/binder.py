"""
Helmsman value binding: option occurrences → bound values.

What this module provides
- OptionValues: the bound value store of one command (canonical key → value).
  A key that was never assigned is simply absent; lookups through
  values.get(key, Unset) tell “never assigned” apart from an explicit None.
- Binder: the synchronous listener table the tokenizer emits into. Each
  registered option name maps to one callback; the default callback applies the
  binding rules below, special options (version) install their own.

Binding rules (one occurrence, in order)
1. a non-None raw value goes through the option's coercion, called as
   coerce(raw, previous) where previous is the bound value or else the default.
2. a negation option always binds False.
3. a None value (boolean flag, optional value absent) over an unassigned or
   boolean slot binds the default when it is truthy, else True.
4. any other occurrence carrying a value replaces what is bound (last occurrence
   wins), even when the coercion turned it into None; an occurrence without a
   value over a non-boolean slot leaves it untouched.

reset() clears the store and replays the pre-assignment of every registered
option, so each parse starts from the declared defaults.

Default pre-assignment happens once, at registration: required, optional and
negation options, and options with a boolean default, start with their default
in the store. A negation option without its positive counterpart starts at
True; with one, it starts from whatever the positive option left in the store.
"""
import functools
import logging
from collections.abc import MutableMapping

from .utils import Unset

logger = logging.getLogger(__name__)


class OptionValues(MutableMapping):
    """
    bound value store scoped to a single command (canonical key → value).
    """

    def __init__(self, *args, **kwargs):
        self._values = dict(*args, **kwargs)

    def __getitem__(self, key, /):
        return self._values[key]

    def __setitem__(self, key, value, /):
        self._values[key] = value

    def __delitem__(self, key, /):
        del self._values[key]

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __repr__(self):
        return f"option-values({self._values!r})"


class Binder:
    """
    listener table and binding rules for the options of one command.

    contract
    - register(option, positive=False) pre-assigns the option's default and installs
      the default listener under option.name.
    - listen(option, callback) replaces the listener for option.name; the callback
      receives the raw value (None when the occurrence carried none).
    - emit(option, value) is what the tokenizer calls for every occurrence.
    """

    def __init__(self, values=Unset):
        self.values = values if values is not Unset else OptionValues()
        self._listeners = {}
        self._registered = []

    def register(self, option, /, *, positive=False):
        """
        pre-assign the option's default and install the default listener.

        parameters
        - option: Option with default/coerce already wired.
        - positive: True when the positive counterpart ("--foo" for "--no-foo")
          is already registered on the same command.
        """
        self._registered.append((option, positive))
        self._preassign(option, positive)
        self.listen(option, functools.partial(self.bind, option))

    def _preassign(self, option, positive):
        default = option.default
        if option.negate or option.optional or option.required or isinstance(default, bool):
            if option.negate:
                # absence of "--no-foo" means foo is on, unless "--foo" decides it
                default = self.values.get(option.key, Unset) if positive else True
            if default is not Unset:
                self.values[option.key] = default
                option.default = default
                logger.debug("preassigned %r to %r", option.key, default)

    def reset(self):
        """
        drop every bound value and pre-assign the registered defaults again.
        """
        self.values.clear()
        for option, positive in self._registered:
            self._preassign(option, positive)

    def listen(self, option, callback, /):
        if not callable(callback):
            raise TypeError("binder listener must be callable")
        self._listeners[option.name] = callback

    def emit(self, option, value=None, /):
        """
        deliver one occurrence of option (value is None when nothing was attached).
        """
        return self._listeners[option.name](value)

    def bind(self, option, value=None, /):
        """
        apply the binding rules for a single occurrence and update the store.
        """
        key = option.key
        current = self.values.get(key, Unset)

        given = value is not None

        if given and option.coerce:
            value = option.coerce(value, option.default if current is Unset else current)

        if option.negate:
            self.values[key] = False
        elif current is Unset or isinstance(current, bool):
            self.values[key] = (option.default or True) if value is None else value
        elif given:
            # a coercion result replaces the value, None included
            self.values[key] = value

        logger.debug("bound %r to %r", key, self.values.get(key, Unset))


__all__ = (
    "OptionValues",
    "Binder",
)
