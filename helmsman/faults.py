"""
Helmsman faults (parse errors and early exits) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every way a parse can end
  early. Codes are grouped by domain to keep copy consistent and make
  logs/searches predictable, and each one maps to a stable kebab-case kind.
- CommandError: base type that carries message + options (exit code, title, hint,
  originating command) and knows how to render itself with rich.
- CommandExit: non-error termination (help or version was displayed).
- trigger(): central entry point to surface any fault (respecting the installed handler).
- terminate(): the default handler, render to stderr then leave the process.

Integration
- The resolver raises faults while walking the command tree; Command.parse()
  catches the first one and calls trigger(fault, handler=...) with the handler of
  the command where it arose. Without a handler the process exits with the
  fault's suggested exit code; with one, the handler receives the fault instead.
"""
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping (by high-level domain)
    - informational exits (100xx)
      • HELP, HELP_DISPLAYED, VERSION
    - routing (111xx)
      • UNKNOWN_COMMAND
    - options (1111x)
      • UNKNOWN_OPTION, OPTION_MISSING_ARGUMENT, MISSING_MANDATORY_OPTION_VALUE
    - positionals (1112x)
      • MISSING_ARGUMENT, VARIADIC_ARG_NOT_LAST

    rationale
    - codes are discoverable (searchable in logs and docs) and normalized to a string
      via normalize() so hosts can remap them if desired.
    - kind gives the machine-readable name embedding programs should switch on.
    """
    # --- informational exits (10xxx) ---
    HELP                            = 10001
    HELP_DISPLAYED                  = 10002
    VERSION                         = 10003

    # --- routing errors (111xx) ---
    UNKNOWN_COMMAND                 = 11101

    # --- option errors (1111x) ---
    UNKNOWN_OPTION                  = 11112
    OPTION_MISSING_ARGUMENT         = 11117
    MISSING_MANDATORY_OPTION_VALUE  = 11119

    # --- positional errors (1112x) ---
    MISSING_ARGUMENT                = 11121
    VARIADIC_ARG_NOT_LAST           = 11122

    @property
    def kind(self):
        """
        stable machine-readable kind, e.g. FaultCode.UNKNOWN_OPTION.kind == "unknown-option".
        """
        return self.name.lower().replace("_", "-")

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandError(Exception):
    """
    base fault raised while resolving a command line.

    contract
    - message: human-readable, single sentence (also the str() of the exception).
    - options: read-only mapping with at least
      • code: FaultCode
      • exit_code: suggested process exit code
      and optionally title, hint, command, colorful, handler and any context
      the reporter wants to keep (flag, name, token, ...).
    """
    __code__ = Unset
    __title__ = "command error"

    def __init__(self, message, /, **options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__} message must be a string")
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({
            "code": type(self).__code__,
            "exit_code": 1,
            "title": type(self).__title__,
        } | options)

    @property
    def code(self):
        return self.options["code"]

    @property
    def kind(self):
        return self.code.kind

    @property
    def exit_code(self):
        return self.options["exit_code"]

    @property
    def command(self):
        return self.options.get("command")

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        command = self.command
        prog = getattr(main, "__prog__", command.root.name() if command is not None else "")

        header = Text.assemble(
            "[ ",
            text(prog or "error", "prog-name"),
            " — ",
            text(self.code.normalize(), "code"),
            " | ",
            text(self.options["title"], "error-title"),
            " ]"
        )
        renderables = [header, text(self.message, "error-message")]
        if hint := self.options.get("hint"):
            renderables.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))
        return Group(*renderables)

    def __trigger__(self):
        """
        hand the fault to the installed handler, or terminate the process.
        """
        if handler := self.options.get("handler"):
            return handler(self)
        terminate(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        fault = type(self)(self.message, **{**self.options, **overrides})
        fault.__cause__ = self.__cause__
        return fault


class MissingArgumentError(CommandError):
    __code__ = FaultCode.MISSING_ARGUMENT
    __title__ = "missing argument"


class OptionMissingArgumentError(CommandError):
    __code__ = FaultCode.OPTION_MISSING_ARGUMENT
    __title__ = "option argument missing"


class MissingMandatoryOptionValueError(CommandError):
    __code__ = FaultCode.MISSING_MANDATORY_OPTION_VALUE
    __title__ = "required option not specified"


class UnknownOptionError(CommandError):
    __code__ = FaultCode.UNKNOWN_OPTION
    __title__ = "unknown option"


class UnknownCommandError(CommandError):
    __code__ = FaultCode.UNKNOWN_COMMAND
    __title__ = "unknown command"


class VariadicArgNotLastError(CommandError):
    __code__ = FaultCode.VARIADIC_ARG_NOT_LAST
    __title__ = "variadic argument not last"


class CommandExit(CommandError):
    """
    non-error termination: help or version output already happened.

    the exit code is 0 unless help was shown because the user gave nothing to do.
    """
    __code__ = FaultCode.HELP
    __title__ = "exit"


def terminate(fault, /):
    """
    default handler: print real errors to stderr, then exit with the suggested code.
    """
    if not isinstance(fault, CommandExit):
        console.print(fault)
    sys.exit(fault.exit_code)


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandError).
    - options are merged into the fault via __replace__(**options) before triggering.
    - with a handler option the handler receives the fault (its return value is
      passed back); otherwise the process terminates.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    return fault.__replace__(**options).__trigger__()


__all__ = (
    "FaultCode",
    "CommandError",
    "MissingArgumentError",
    "OptionMissingArgumentError",
    "MissingMandatoryOptionValueError",
    "UnknownOptionError",
    "UnknownCommandError",
    "VariadicArgNotLastError",
    "CommandExit",
    "terminate",
    "trigger",
)
