r"""
Helmsman tokenizer: split one command level's tokens into operands and unknowns.

purpose
- walk the raw token list once, left to right, with one token of lookahead for
  option values, against the options registered on a single command.
- recognised options (and their values) are consumed and delivered to an emit
  callback; everything else lands in one of two ordered destinations:
  • operands: non-option tokens seen before the first unknown option
  • unknown:  the first unknown option-looking token and everything after it
- once the destination switches to unknown it never switches back.

token classes
- "--" ends option scanning: every remaining token is copied verbatim to the
  active destination ("--" itself is kept only when that destination is unknown).
- option-shaped: at least two characters, starting with "-".
- exact match ("-p", "--pepper"): dispatch by arity
  • required: the next token is the value, a missing one is a fault
  • optional: the next token is the value unless it is option-shaped
  • none:     boolean occurrence, nothing consumed
- short cluster ("-px", "-abc"): the second character names a known short option
  • value-bearing: the rest of the token is its value
  • boolean: emit it, then push "-<rest>" back to be processed next
- inline long value ("--name=value"): split on the first "=" when --name takes a value.

examples
    argv                          → operands, unknown
    --known kkk op                → [op], []
    op --known kkk                → [op], []
    sub --unknown uuu op          → [sub], [--unknown uuu op]
    sub -- --unknown uuu op       → [sub --unknown uuu op], []
"""
import logging
import re
from collections import deque
from typing import NamedTuple

from .faults import OptionMissingArgumentError
from .options import Arity

logger = logging.getLogger(__name__)


class Parsed(NamedTuple):
    """
    tokenizer output: operands and unknown tokens, both in original order.
    """
    operands: list
    unknown: list


def maybe_option(token, /):
    """
    True when the token is option-shaped (length >= 2, starts with '-').
    """
    return len(token) > 1 and token[0] == "-"


class Tokenizer:
    """
    single-pass matcher for one command level.

    parameters
    - find: callable(token) -> Option | None
      lookup of a registered option by its exact short or long spelling.
    - emit: callable(option, value) -> Any
      receiver of option occurrences (value is None when none was attached).
    """

    def __init__(self, find, emit, /):
        if not callable(find) or not callable(emit):
            raise TypeError("tokenizer 'find' and 'emit' must be callable")
        self._find = find
        self._emit = emit

    def __call__(self, tokens, /):
        operands = []
        unknown = []
        destination = operands
        tokens = deque(tokens)

        while tokens:
            token = tokens.popleft()

            # literal separator: everything after it is kept verbatim
            if token == "--":
                if destination is unknown:
                    destination.append(token)
                destination.extend(tokens)
                break

            if maybe_option(token) and (option := self._find(token)):
                match option.arity:
                    case Arity.REQUIRED:
                        if not tokens:
                            raise OptionMissingArgumentError(
                                "option %r argument missing" % option.flags,
                                flag=token,
                                option=option,
                                hint="pass a value after %s (for example: %s <value>)" % (token, token),
                            )
                        self._occurrence(option, tokens.popleft())
                    case Arity.OPTIONAL:
                        value = None
                        if tokens and not maybe_option(tokens[0]):
                            value = tokens.popleft()
                        self._occurrence(option, value)
                    case _:
                        self._occurrence(option)
                continue

            # combined short options following a single dash, first one eaten if known
            if len(token) > 2 and token[0] == "-" and token[1] != "-":
                if option := self._find("-" + token[1]):
                    if option.arity is Arity.NONE:
                        self._occurrence(option)
                        tokens.appendleft("-" + token[2:])
                    else:
                        self._occurrence(option, token[2:])
                    continue

            # known long option with an attached value, like --foo=bar
            if re.match(r"--[^=]+=", token):
                name, _, value = token.partition("=")
                if (option := self._find(name)) and option.arity is not Arity.NONE:
                    self._occurrence(option, value)
                    continue

            # looks like an option but unknown: unknown from here on
            if maybe_option(token) and destination is operands:
                logger.debug("unknown option %r, switching to unknown tokens", token)
                destination = unknown

            destination.append(token)

        return Parsed(operands, unknown)

    def _occurrence(self, option, value=None, /):
        logger.debug("option %r occurred with %r", option.long, value)
        self._emit(option, value)


__all__ = (
    "Parsed",
    "Tokenizer",
    "maybe_option",
)
