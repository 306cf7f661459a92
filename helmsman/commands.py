"""
Helmsman command layer: declare, compose, and resolve CLI commands.

What this module provides
- Command: a node of the command tree. It owns its options, its positional
  argument declarations, its children and its bound option values, and it
  resolves a token list into "which command runs, with what values".
- program(name): create a root command.

Core ideas
- Builder-style declaration: every configuration method returns the command so
  calls chain (command() returns the new child, as it is the next thing to configure).
- One level at a time: each level tokenizes the tokens it receives against its
  own options, then either recurses into a child with the remaining tokens,
  forwards to a default child, shows help, or terminates and runs its action.
- Faults propagate as exceptions up the recursion and are handed, once, to the
  exit handler by parse(); the default handler prints and exits.

Quick start
    from helmsman import program

    cli = program("pizza")
    cli.option("-p, --pepper", "add pepper")
    cli.option("-c, --cheese [type]", "add cheese", "marble")
    cli.option("--no-sauce", "remove sauce")
    cli.command("bake <size> [toppings...]").action(
        lambda size, toppings, command: print(size, toppings, command.parent.opts())
    )
    cli.parse()

Resolution order at one level (first match wins)
1. operands[0] names a child (exact name before alias) → recurse into it.
2. implicit help command "help [command]" → show help (of the named child).
3. default child → forward every operand and unknown token to it.
4. terminal: help flag check, mandatory option sweep (this command and every
   ancestor), unknown option check, positional binding, action.

See also
- helmsman.tokenizer for token classification.
- helmsman.binder for how occurrences become values.
- helmsman.faults for fault codes and rendering.
"""
import asyncio
import difflib
import inspect
import logging
import os.path
import re
import shlex
import sys
import weakref

from rich.console import Console

from . import helper
from .arguments import parse_arguments
from .binder import Binder, OptionValues
from .faults import *
from .options import Option
from .tokenizer import Tokenizer
from .utils import *

logger = logging.getLogger(__name__)

stdout = Console()


def _attach_to_parent(self, parent):
    """
    Register this command under its parent, enforcing unique names.

    Behavior
    - Appends self to the parent's children and stores a weak back-reference,
      so the tree keeps a single ownership edge (parent → child).
    - If the name is already taken by a different child, raises ValueError
      with a precise message indicating whether the conflict is at the
      command or subcommand level.
    """
    for child in parent.commands:
        if child is not self and child._name == self._name:
            typeof = "subcommand" if parent.parent else "command"
            raise ValueError(f"{typeof} name {self._name!r} is already in use")
    parent.commands.append(self)
    self._parent = weakref.ref(parent)


def _check_explicit_names(commands):
    """
    Deeply nested executables cannot guess their executable name: require it upfront.
    """
    for command in commands:
        if command._executable and not command._executable_file:
            raise ValueError(f"must specify executable_file for deeply nested executable: {command.name()}")
        _check_explicit_names(command.commands)


def _regex_coercion(pattern):
    """
    Coercion from a compiled pattern: first match, or the previous value when none.
    """

    @rename("coerce")
    def coerce(value, previous):
        match = pattern.search(value)
        return match[0] if match else previous

    return coerce


class Command:
    """
    Command tree node: options, positional arguments, children and bound values.

    Attributes
    - commands: list[Command], children in declaration order.
    - options: list[Option], registered options in declaration order.
    - spec: tuple[Argument, ...], declared positional arguments.
    - values: OptionValues, the bound value store of this command.
    - args: operands followed by unknown tokens seen at this level (after parse).
    - hidden: omit from the parent's help listing.
    - colorful: style rendered faults (inherited from the parent).

    Notes
    - The parent link is weak: the tree is owned top-down only; parent/root/path
      walk it upwards for help names and the mandatory option sweep.
    - Structure is declared once, before parsing; only bound values change while
      a command line is resolved.
    """

    def __init__(self, name=Unset, /):
        if not isinstance(name, str | Unset):
            raise TypeError("command 'name' must be a string")

        self.commands = []
        self.options = []
        self.spec = ()
        self.values = OptionValues()
        self.args = []
        self.raw_args = []
        self.hidden = False
        self.colorful = True
        self.running_command = None

        self._binder = Binder(self.values)
        self._tokenizer = Tokenizer(self._find_option, self._binder.emit)
        self._parent = None
        self._name = coalesce(name, "")
        self._alias = None
        self._description = None
        self._arguments_description = {}
        self._usage = None
        self._version = None
        self._version_option_name = None
        self._allow_unknown_option = False
        self._pass_command_to_action = True
        self._action_results = []
        self._action_handler = None
        self._executable = False
        self._executable_file = None
        self._default_command_name = None
        self._exit_callback = None
        self._launcher = None

        self._help_flags = "-h, --help"
        self._help_description = "display help for command"
        self._help_short_flag = "-h"
        self._help_long_flag = "--help"
        self._has_implicit_help_command = Unset
        self._help_command_name = "help"
        self._help_command_name_and_args = "help [command]"
        self._help_command_description = "display help for command"

    def __repr__(self):
        return f"command(name={self._name!r}, options={len(self.options)}, commands={len(self.commands)})"

    # ── Tree ────────────────────────────────────────────────────────────────

    @property
    def parent(self):
        return self._parent() if self._parent is not None else None

    @property
    def root(self):
        """
        Return the topmost command in the current command hierarchy.
        """
        child, parent = self, self.parent
        while parent:
            child, parent = parent, parent.parent
        return child

    @property
    def path(self):
        """
        Return the full ancestry from root to this command as a tuple.

        The first element is the root command, the last is the current node.
        """
        path = [command := self]
        while command.parent:
            path.append(command := command.parent)
        return tuple(reversed(path))

    def command(self, name_and_args, description=Unset, /, *, is_default=False, hidden=False, executable_file=Unset):
        """
        Define a subcommand.

        Forms
        - in-process: command("clone <source> [destination]") → the new child,
          configure it further and give it an action.
        - executable: command("start <service>", "start named service") → this
          command (for chaining); the child delegates to the installed launcher.

        Parameters
        - name_and_args: str
          command name followed by positional declarations (<required>, [optional],
          the last one may be variadic "...").
        - description: str
          marks the child as an executable subcommand.
        - is_default: bool
          forward to this child whenever no operand names another child.
        - hidden: bool
          omit the child from help listings.
        - executable_file: str
          explicit executable name for the launcher.

        Inheritance
        - help flags, help command name, pass_command_to_action and colorful are
          copied from this command at creation.
        """
        if not isinstance(name_and_args, str):
            raise TypeError("command 'name_and_args' must be a string")
        name, *args = name_and_args.split() or [""]
        if not name:
            raise ValueError("command 'name_and_args' must start with a name")

        command = type(self)(name)
        if description is not Unset:
            command.description(description)
            command._executable = True
        if is_default:
            self._default_command_name = command._name

        command.hidden = bool(hidden)
        command.colorful = self.colorful
        command._help_flags = self._help_flags
        command._help_description = self._help_description
        command._help_short_flag = self._help_short_flag
        command._help_long_flag = self._help_long_flag
        command._help_command_name = self._help_command_name
        command._help_command_name_and_args = self._help_command_name_and_args
        command._help_command_description = self._help_command_description
        command._pass_command_to_action = self._pass_command_to_action
        command._executable_file = coalesce(executable_file)

        command.arguments(args)
        _attach_to_parent(command, self)

        if description is not Unset:
            return self
        return command

    def add_command(self, command, /):
        """
        Attach a prepared subcommand and return this command for chaining.
        """
        if not isinstance(command, Command):
            raise TypeError("add_command() argument must be a command")
        if not command._name:
            raise ValueError("command passed to add_command() must have a name")
        _check_explicit_names(command.commands)
        _attach_to_parent(command, self)
        return self

    def arguments(self, spec, /):
        """
        Declare positional arguments, e.g. arguments("<source> [destination...]").
        """
        self.spec += parse_arguments(spec)
        return self

    # ── Options ─────────────────────────────────────────────────────────────

    def _option_ex(self, flags, description, coerce, default, /, *, mandatory):
        """
        shared implementation of option() and required_option().

        behavior
        - parse the flags string into an Option.
        - a non-callable coerce is the default value; a compiled pattern becomes a
          coercion keeping the first match (or the previous value on no match).
        - reject spellings and canonical keys already used on this command (the
          positive/negative pair of one option shares its key).
        - pre-assign the default and install the binding listener.
        """
        option = Option(flags, description, mandatory=mandatory)

        if coerce is not Unset and not callable(coerce):
            if isinstance(coerce, re.Pattern):
                coerce = _regex_coercion(coerce)
            else:
                default, coerce = coerce, Unset

        for existing in self.options:
            if existing.matches(option.short) or existing.matches(option.long):
                raise ValueError(f"command option {option.flags!r} conflicts with {existing.flags!r}")
            if existing.key == option.key and existing.negate is option.negate:
                raise ValueError(f"command option key {option.key!r} is already in use")

        positive = option.negate and self._find_option(re.sub(r"^--no-", "--", option.long)) is not None

        option.coerce = coerce
        option.default = default
        self.options.append(option)
        self._binder.register(option, positive=positive)
        return self

    def option(self, flags, description="", coerce=Unset, default=Unset, /):
        """
        Define an option from a flags string.

        Examples
            cli.option("-p, --pepper", "add pepper")                  # boolean
            cli.option("-C, --chdir <path>", "change directory")      # required value
            cli.option("-c, --cheese [type]", "add cheese", "marble") # optional value, default
            cli.option("--no-sauce", "remove sauce")                  # negation, sauce=True until given
            cli.option("-i, --integer <n>", "an integer", lambda value, _: int(value))  # coercion
        """
        return self._option_ex(flags, description, coerce, default, mandatory=False)

    def required_option(self, flags, description="", coerce=Unset, default=Unset, /):
        """
        Define an option that must hold a value after parsing (otherwise like option()).
        """
        return self._option_ex(flags, description, coerce, default, mandatory=True)

    def opts(self):
        """
        Return a mapping of canonical key → bound value for every registered option.

        Unassigned options map to None; the version option maps to the version text.
        """
        result = {}
        for option in self.options:
            if option.key == self._version_option_name:
                result[option.key] = self._version
            else:
                result[option.key] = self.values.get(option.key)
        return result

    def allow_unknown_option(self, allow=True, /):
        self._allow_unknown_option = bool(allow)
        return self

    def pass_command_to_action(self, value=True, /):
        self._pass_command_to_action = bool(value)
        return self

    # ── Identity ────────────────────────────────────────────────────────────

    def name(self, text=Unset, /):
        if text is Unset:
            return self._name
        if not isinstance(text, str):
            raise TypeError("command name must be a string")
        self._name = text
        return self

    def alias(self, alias=Unset, /):
        if alias is Unset:
            return self._alias
        if alias == self._name:
            raise ValueError("command alias can't be the same as its name")
        self._alias = alias
        return self

    def description(self, text=Unset, arguments=Unset, /):
        """
        Get or set the description (and, optionally, per-argument descriptions).
        """
        if text is Unset:
            return self._description
        self._description = text
        self._arguments_description = dict(coalesce(arguments, {}))
        return self

    def arguments_description(self):
        return dict(self._arguments_description)

    def usage(self, text=Unset, /):
        """
        Get or set the usage fragment shown after the command name in help.
        """
        if text is not Unset:
            self._usage = text
            return self
        if self._usage is not None:
            return self._usage
        return "[options]" + (" [command]" if self.commands else "") + "".join(
            " " + argument.spelling for argument in self.spec
        )

    def version(self, text=Unset, flags="-V, --version", description="output the version number", /):
        """
        Set the program version and register the option that prints it.

        The option writes the version to stdout and ends resolution with a
        CommandExit of kind "version" (exit code 0).
        """
        if text is Unset:
            return self._version
        self._version = text
        option = Option(flags, description)
        self._version_option_name = option.key
        self.options.append(option)

        @rename("version")
        def listener(value=None):
            stdout.out(text, highlight=False)
            self.trigger(CommandExit(text, code=FaultCode.VERSION, exit_code=0))

        self._binder.listen(option, listener)
        return self

    # ── Handlers ────────────────────────────────────────────────────────────

    def action(self, callback, /):
        """
        Register the callback run when resolution ends at this command.

        Call shape
        - one parameter per declared positional argument, in order (a variadic
          one receives a list, a missing optional one receives None),
        - then this command (or opts() with pass_command_to_action(False)),
        - then, only when there are more tokens than declared arguments, a list
          with the extra ones.

        The return value is collected on the root command; parse_async() awaits it.
        """
        if not callable(callback):
            raise TypeError("action() argument must be callable")
        self._action_handler = callback
        return self

    def exit_override(self, callback=Unset, /):
        """
        Install the fault handler used instead of terminating the process.

        Without a callback, faults are re-raised to the caller of parse().
        Commands without a handler use the closest ancestor's one.
        """
        if callback is Unset:

            @rename("reraise")
            def callback(fault):
                raise fault

        elif not callable(callback):
            raise TypeError("exit_override() argument must be callable")
        self._exit_callback = callback
        return self

    def launcher(self, callback, /):
        """
        Install the executable-subcommand launcher: callback(subcommand, tokens).

        Commands without a launcher use the closest ancestor's one.
        """
        if not callable(callback):
            raise TypeError("launcher() argument must be callable")
        self._launcher = callback
        return self

    def _inherited(self, attribute):
        for command in reversed(self.path):
            if (value := getattr(command, attribute)) is not None:
                return value
        return None

    def _exit(self, fault, /):
        return trigger(fault, handler=self._inherited("_exit_callback"), colorful=self.colorful)

    def trigger(self, fault, /, **options):
        """
        Attach this command to a fault and raise it up the resolver.
        """
        if not isinstance(fault, CommandError):
            raise TypeError("trigger() argument must be a command error")
        raise fault.__replace__(**options, command=self, colorful=self.colorful)

    # ── Help ────────────────────────────────────────────────────────────────

    def help_option(self, flags=Unset, description=Unset, /):
        """
        Change the help flags (default "-h, --help") and their description.
        """
        self._help_flags = coalesce(flags, self._help_flags)
        self._help_description = coalesce(description, self._help_description)
        fragments = re.split(r"[ ,|]+", self._help_flags)
        self._help_short_flag = fragments.pop(0) if len(fragments) > 1 else None
        self._help_long_flag = fragments.pop(0)
        return self

    def help_flags(self):
        return self._help_flags, self._help_description

    def add_help_command(self, enable_or_name_and_args=True, description=Unset, /):
        """
        Force the implicit help command on (optionally renamed) or off.

            add_help_command()                                  # force on
            add_help_command(False)                             # force off
            add_help_command("assist [cmd]", "show assistance") # custom spelling
        """
        if enable_or_name_and_args is False:
            self._has_implicit_help_command = False
            return self
        self._has_implicit_help_command = True
        if isinstance(enable_or_name_and_args, str):
            self._help_command_name = enable_or_name_and_args.split()[0]
            self._help_command_name_and_args = enable_or_name_and_args
        self._help_command_description = coalesce(description, self._help_command_description)
        return self

    def has_implicit_help_command(self):
        """
        True when "help [command]" is available: forced, or children without an action.
        """
        if self._has_implicit_help_command is not Unset:
            return self._has_implicit_help_command
        return bool(self.commands) and not self._action_handler and not self._find_command("help")

    def help_command(self):
        return self._help_command_name_and_args, self._help_command_description

    def help_information(self):
        """
        Return the help screen as plain text.
        """
        return helper.plain(self)

    def output_help(self, transform=Unset, /):
        """
        Write help to stdout, optionally passing the text through transform first.
        """
        if transform is Unset:
            return stdout.print(helper.render(self))
        if not isinstance(text := transform(self.help_information()), str):
            raise TypeError("output_help() transform must return a string")
        stdout.out(text, end="", highlight=False)

    def help(self, transform=Unset, /):
        """
        Output help and end resolution (kind "help", exit code 0).
        """
        self.output_help(transform)
        self.trigger(CommandExit("help displayed", code=FaultCode.HELP, exit_code=0))

    def _help_and_error(self):
        self.output_help()
        self.trigger(CommandExit("help displayed", code=FaultCode.HELP, exit_code=1))

    def _output_help_if_requested(self, tokens):
        if any(token in (self._help_long_flag, self._help_short_flag) for token in tokens):
            self.output_help()
            self.trigger(CommandExit("help displayed", code=FaultCode.HELP_DISPLAYED, exit_code=0))

    # ── Faults ──────────────────────────────────────────────────────────────

    def _route(self):
        return " ".join(step.name() for step in self.path if step.name())

    def missing_argument(self, name, /):
        self.trigger(MissingArgumentError(
            "missing required argument %r" % name,
            name=name,
            hint="try '%s --help' to see the expected arguments" % self._route(),
        ))

    def option_missing_argument(self, option, flag=Unset, /):
        flag = coalesce(flag, option.long)
        self.trigger(OptionMissingArgumentError(
            "option %r argument missing" % option.flags,
            flag=flag,
            option=option,
            hint="pass a value after %s (for example: %s <value>)" % (flag, flag),
        ))

    def missing_mandatory_option_value(self, option, /):
        self.trigger(MissingMandatoryOptionValueError(
            "required option %r not specified" % option.flags,
            option=option,
            hint="add %s <value> to '%s'" % (option.long, self._route()),
        ))

    def unknown_option(self, flag, /):
        if self._allow_unknown_option:
            return
        spellings = [name for option in self.options for name in (option.short, option.long) if name]
        suggestions = difflib.get_close_matches(flag, spellings, 5)
        try:
            hint = "did you mean %r? you can also run '%s --help' to see all options" % (suggestions[0], self._route())
        except IndexError:
            hint = "try '%s --help' to see all available options" % self._route()
        self.trigger(UnknownOptionError(
            "unknown option %r" % flag,
            flag=flag,
            suggestions=suggestions,
            hint=hint,
        ))

    def unknown_command(self):
        name = self.args[0]
        spellings = [spelling for command in self.commands for spelling in (command._name, command._alias) if spelling]
        suggestions = difflib.get_close_matches(name, spellings, 5)
        typeof = "subcommands" if self.parent else "commands"
        try:
            hint = "did you mean %r? you can also run '%s --help' to see available %s" % (suggestions[0], self._route(), typeof)
        except IndexError:
            hint = "run '%s --help' to see available %s" % (self._route(), typeof)
        self.trigger(UnknownCommandError(
            "unknown command %r" % name,
            name=name,
            suggestions=suggestions,
            hint=hint,
        ))

    def variadic_arg_not_last(self, name, /):
        self.trigger(VariadicArgNotLastError(
            "variadic arguments must be last %r" % name,
            name=name,
            hint="move %r to the end of the argument declaration" % name,
        ))

    # ── Parsing ─────────────────────────────────────────────────────────────

    def _find_command(self, name, /):
        """
        Find a child by exact name first, then by alias.
        """
        if not name:
            return None
        for command in self.commands:
            if command._name == name:
                return command
        for command in self.commands:
            if command._alias == name:
                return command
        return None

    def _find_option(self, token, /):
        for option in self.options:
            if option.matches(token):
                return option
        return None

    def parse_options(self, argv, /):
        """
        Split argv into operands and unknown tokens, binding every recognised option.

        returns
        - Parsed(operands, unknown)

        raises
        - OptionMissingArgumentError when a required-value option ends the list.
        """
        try:
            return self._tokenizer(argv)
        except OptionMissingArgumentError as fault:
            self.option_missing_argument(fault.options["option"], fault.options.get("flag", Unset))
        except CommandError as fault:
            if fault.command is not None:
                raise
            self.trigger(fault)

    def _reset(self):
        self._binder.reset()
        for command in self.commands:
            command._reset()

    def _check_for_missing_mandatory_options(self):
        """
        Fail on the first mandatory option without a value, from this command up to the root.
        """
        for command in reversed(self.path):
            for option in command.options:
                if option.mandatory and command.values.get(option.key) is None:
                    command.missing_mandatory_option_value(option)

    def _dispatch_subcommand(self, name, operands, unknown):
        command = self._find_command(name)
        if command is None:
            self._help_and_error()
        logger.debug("dispatching %r → %r with %r %r", self._name, command._name, operands, unknown)
        if command._executable:
            self._execute_subcommand(command, operands + unknown)
        else:
            command._parse_command(operands, unknown)

    def _execute_subcommand(self, command, tokens):
        """
        Hand an executable subcommand and its tokens to the launcher.
        """
        self._check_for_missing_mandatory_options()
        if (launcher := self._inherited("_launcher")) is None:
            raise RuntimeError(f"no launcher installed for executable subcommand {command.name()!r}")
        self.running_command = launcher(command, tokens)

    def _parse_command(self, operands, unknown):
        """
        Resolve tokens at this level: recurse, forward, show help, or run the action.

        parameters
        - operands: operands carried from the enclosing level.
        - unknown: tokens this level has not tokenized yet.

        behavior (first match wins)
        - operands[0] names a child → recurse with the rest.
        - implicit help command → help of this level, or of the named child.
        - default child → forward all operands and unknown tokens.
        - terminal level:
          • children, no tokens, no action → help, exit code 1.
          • help flag among unknown tokens → help, exit code 0.
          • mandatory sweep, then unknown option check.
          • action: bind positionals and call it; otherwise a wildcard "*" child,
            or unknown command, or help when children exist.
        """
        parsed = self.parse_options(unknown)
        operands = operands + parsed.operands
        unknown = parsed.unknown
        self.args = operands + unknown
        logger.debug("%r parsed operands=%r unknown=%r", self._name, operands, unknown)

        if operands and self._find_command(operands[0]):
            return self._dispatch_subcommand(operands[0], operands[1:], unknown)

        if self.has_implicit_help_command() and operands and operands[0] == self._help_command_name:
            if len(operands) == 1:
                self.help()
            return self._dispatch_subcommand(operands[1], [], [self._help_long_flag])

        if self._default_command_name:
            # help for the default child is asked from its parent, show the parent's
            self._output_help_if_requested(unknown)
            return self._dispatch_subcommand(self._default_command_name, operands, unknown)

        if self.commands and not self.args and not self._action_handler:
            # probably missing subcommand and no handler, user needs help
            self._help_and_error()

        self._output_help_if_requested(unknown)
        self._check_for_missing_mandatory_options()
        if unknown:
            self.unknown_option(unknown[0])

        if self._action_handler:
            return self._invoke_action(self.args)
        if operands:
            if self._find_command("*"):
                return self._dispatch_subcommand("*", operands, unknown)
            if self.commands:
                self.unknown_command()
        elif self.commands:
            self._help_and_error()
        # nothing hooked up at this level: control returns to the caller of parse()

    def _invoke_action(self, tokens):
        """
        Bind declared positionals against tokens and call the action.
        """
        args = list(tokens)
        for index, argument in enumerate(self.spec):
            if argument.required and index >= len(args):
                self.missing_argument(argument.name)
            elif argument.variadic:
                if index != len(self.spec) - 1:
                    self.variadic_arg_not_last(argument.name)
                args.extend([None] * (index - len(args)))
                args[index:] = [args[index:]]

        expected = len(self.spec)
        parameters = args[:expected] + [None] * (expected - len(args))
        parameters.append(self if self._pass_command_to_action else self.opts())
        if len(args) > expected:
            parameters.append(args[expected:])

        logger.debug("invoking %r action with %r", self._name, parameters)
        result = self._action_handler(*parameters)
        self.root._action_results.append(result)
        return result

    def parse(self, argv=Unset, /):
        """
        Parse a command line, bind options, and run the resolved action.

        parameters
        - argv: Unset | str | Iterable[str]
          • Unset → sys.argv[1:] (and the program name is guessed from sys.argv[0]).
          • str   → split with shell rules (shlex.split).
          • tokens without the program name.

        returns
        - this command (bound values are readable through opts()/values; every
          parse starts again from the declared defaults).

        faults
        - the first fault raised during resolution goes to the exit handler of the
          command where it arose (or the closest ancestor's); without any handler
          the process exits with the fault's exit code.
        """
        if argv is Unset:
            argv = sys.argv[1:]
            if not self._name:
                self._name = os.path.splitext(os.path.basename(sys.argv[0]))[0]
        elif isinstance(argv, str):
            argv = shlex.split(argv)

        self.raw_args = list(argv)
        self._reset()
        self._action_results.clear()
        try:
            self._parse_command([], self.raw_args)
        except CommandError as fault:
            (fault.command or self)._exit(fault)
        return self

    async def parse_async(self, argv=Unset, /):
        """
        Parse like parse(), then await every awaitable action result.

        returns
        - list of action results, in the order actions ran.
        """
        self.parse(argv)

        async def settle(result):
            return await result if inspect.isawaitable(result) else result

        return list(await asyncio.gather(*map(settle, self._action_results)))


def program(name=Unset, /):
    """
    Create a root command.
    """
    return Command(name)


__all__ = (
    "Command",
    "program",
)
