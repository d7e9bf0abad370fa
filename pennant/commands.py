"""
Pennant command layer: build command trees and dispatch argument vectors.

What this module provides
- Command: one node of a command tree. Running a node
  1. declares its flags on a fresh FlagSet,
  2. overlays mapped environment variables onto those flags,
  3. parses the arguments,
  4. checks required flags,
  5. publishes every declared flag into the context's FlagTable,
  6. calls its wrapper with a continuation (or the continuation directly),
  7. where the continuation dispatches to the child named by the first
     remaining argument, else calls the handler, else fails.

- Helpers:
  • command(...): build a Command around a handler, directly or as a decorator.
  • usage(command, flagset): default help renderer (rich).
  • scoped(factory) / interruptible(*signals): wrappers from context managers.
  • invoke(command, prompt): hosting-program runner with exit statuses.

Quick start
    from pennant import Command, invoke

    def declare(flags):
        flags.bool("verbose", False, "talk more")

    root = Command("tool", usage="does things", flags=declare)

    @root.command(usage_args="FILE ...")
    def show(context, args):
        "print the files"
        if context.table.get("verbose"):
            print("showing", args)

    if __name__ == "__main__":
        invoke(root)              # tool -verbose show a.txt b.txt

Design notes
- Handlers are handler(context, args) and wrappers wrapper(context, proceed);
  whatever they return is returned by run().
- A wrapper decides what the continuation's error means: let it propagate,
  suppress it, or raise join(error, own_error) to report both.
"""
import contextlib
import inspect
import os
import shlex
import signal
import sys
from collections import defaultdict
from collections.abc import Iterable, Mapping

from rich.console import Console, Group
from rich.text import Text

from .context import Context
from .faults import (
    FlagException,
    FaultGroup,
    HelpRequested,
    MissingRequiredFlagError,
    DispatchExhaustedError,
    UndeclaredFlagError,
    report,
)
from .flags import FlagSet
from .utils import Unset, coalesce, rename, mirror, validate_name


def _command_name(callback):
    return "-".join(filter(None, callback.__name__.split("_"))) or callback.__name__


def _summary(callback):
    # first paragraph of the docstring, folded on one line
    return " ".join((inspect.getdoc(callback) or "").split("\n\n")[0].split())


def _sanitized(arguments, what):
    if isinstance(arguments, str) or not isinstance(arguments, Iterable):
        raise TypeError(f"{what} argument must be an iterable of strings")
    arguments = list(arguments)
    for argument in arguments:
        if not isinstance(argument, str):
            raise TypeError(f"{what} argument must be an iterable of strings")
    return arguments


class Command:
    """
    A node of a command tree.

    Parameters
    - name: str, matched against the first remaining argument by the parent.
    - usage: one-line summary shown in help and in the parent's command table.
    - usage_args: placeholder text after the command in the usage line ("FILE ...").
    - flags: callable(flagset) declaring this node's flags.
    - environment: mapping flag name -> environment variable name; a present
      variable sets the flag before arguments are parsed (arguments win).
    - required: flag names that must be supplied by environment or arguments.
    - wrapper: callable(context, proceed) around the rest of the run.
    - children: commands dispatched by name (unique; each has one parent).
    - handler: callable(context, args) run when no child matches.
    - console: rich console for usage output (inherited from the parent at run
      time, stderr by default).

    Raises
    - TypeError / ValueError: malformed metadata (bad types, invalid or
      duplicated names, a child that already has a parent).
    """
    __introspectable__ = ("name", "usage", "usage_args", "environment", "required", "children", "parent")

    name = mirror("name")
    usage = mirror("usage")
    usage_args = mirror("usage_args")
    environment = mirror("environment")
    required = mirror("required")
    parent = mirror("parent")

    def __init__(
            self,
            name,
            /, *,
            usage=Unset,
            usage_args=Unset,
            flags=Unset,
            environment=Unset,
            required=(),
            wrapper=Unset,
            children=(),
            handler=Unset,
            console=Unset,
    ):
        self._name = validate_name(name, "command")

        self._usage = coalesce(usage, "")
        if not isinstance(self._usage, str):
            raise TypeError("command 'usage' must be a string")
        self._usage_args = coalesce(usage_args, "")
        if not isinstance(self._usage_args, str):
            raise TypeError("command 'usage_args' must be a string")

        for option, value in (("flags", flags), ("wrapper", wrapper), ("handler", handler)):
            if value is not Unset and not callable(value):
                raise TypeError(f"command {option!r} must be callable")
        self._flags = flags
        self._wrapper = wrapper
        self._handler = handler

        environment = coalesce(environment, {})
        if not isinstance(environment, Mapping):
            raise TypeError("command 'environment' must be a mapping of flag names to variable names")
        for flag, variable in environment.items():
            if not isinstance(flag, str) or not isinstance(variable, str):
                raise TypeError("command 'environment' must be a mapping of flag names to variable names")
        self._environment = dict(environment)

        if isinstance(required, str) or not isinstance(required, Iterable):
            raise TypeError("command 'required' must be an iterable of flag names")
        self._required = tuple(required)
        for flag in self._required:
            if not isinstance(flag, str):
                raise TypeError("command 'required' must be an iterable of flag names")

        self._console = console
        self._parent = None
        self._children = {}
        for child in children:
            self.add(child)

    @property
    def children(self):
        return tuple(self._children.values())

    @property
    def flags(self):
        return self._flags

    @property
    def wrapper(self):
        return self._wrapper

    @property
    def handler(self):
        return self._handler

    def walk(self):
        """
        yield this command and every descendant, depth first.
        """
        yield self
        for child in self._children.values():
            yield from child.walk()

    def add(self, child, /):
        """
        Attach an existing command as a child and return it.

        Raises
        - TypeError: child is not a Command.
        - ValueError: child already has a parent, would create a cycle, or its
          name is already in use under this command.
        """
        if not isinstance(child, Command):
            raise TypeError("add() argument must be a command")
        if child._parent is not None:
            raise ValueError(f"command {child.name!r} is already attached to {child._parent.name!r}")
        if any(node is self for node in child.walk()):
            raise ValueError(f"command {child.name!r} cannot be attached below itself")
        if self._children.setdefault(child.name, child) is not child:
            raise ValueError(f"subcommand name {child.name!r} is already in use")
        child._parent = self
        return child

    def command(self, source=Unset, /, **metadata):
        """
        Create and attach a child command.

        Same modes as the module-level command(): pass a handler directly, or
        use as a decorator (@parent.command(...)).
        """
        @rename("command")
        def wrapper(source, /):
            return self.add(command(source, **metadata))

        return wrapper(source) if source is not Unset else wrapper

    def run(self, arguments=(), context=Unset, /, *, environ=Unset):
        """
        Run this command over an argument vector (without the program name).

        Parameters
        - arguments: iterable of strings.
        - context: Context to publish into (a fresh one by default).
        - environ: mapping read for environment overlays (os.environ by default).

        Returns whatever the handler (or the wrapper) returns.

        Raises
        - ArgumentSyntaxError / HelpRequested: the flag set rejected the arguments.
        - ParseError (or the value's own error): a mapped environment variable
          holds a bad value.
        - MissingRequiredFlagError, DispatchExhaustedError, UndeclaredFlagError.
        - anything the flags callback, wrapper or handler raises.
        """
        arguments = _sanitized(arguments, "run()")
        context = Context() if context is Unset else context
        if not isinstance(context, Context):
            raise TypeError("run() context must be a pennant context")
        environ = coalesce(environ, os.environ)
        if not isinstance(environ, Mapping):
            raise TypeError("run() environ must be a mapping")
        console = Console(stderr=True) if self._console is Unset else self._console
        return self._run(arguments, context, environ, console)

    def _declare(self, console):
        flagset = FlagSet(self._name, console=console)
        flagset.usage = rename(lambda: usage(self, flagset), "usage")
        if self._flags is not Unset:
            self._flags(flagset)
        for flag in (*self._required, *self._environment):
            if flagset.lookup(flag) is None:
                raise UndeclaredFlagError(
                    f"command {self._name!r} refers to undeclared flag -{flag}",
                    flag=flag,
                    command=self._name,
                )
        return flagset

    def _run(self, arguments, context, environ, console):
        flagset = self._declare(console)

        for flag, variable in self._environment.items():
            if (text := environ.get(variable)) is not None:
                flagset.set(flag, text)

        flagset.parse(arguments)

        supplied = {flag.name for flag in flagset.actual()}
        for flag in self._required:
            if flag not in supplied:
                raise MissingRequiredFlagError(f"missing required flag -{flag}", flag=flag, command=self._name)

        context.table.publish(flagset.visit_all())

        @rename("proceed")
        def proceed(context, /):
            if not isinstance(context, Context):
                raise TypeError("proceed() argument must be a pennant context")
            return self._dispatch(flagset, context, environ, console)

        if self._wrapper is Unset:
            return proceed(context)
        return self._wrapper(context, proceed)

    def _dispatch(self, flagset, context, environ, console):
        remaining = flagset.args
        if remaining and (child := self._children.get(remaining[0])) is not None:
            return child._run(remaining[1:], context, environ, coalesce(child._console, console))
        if self._handler is not Unset:
            return self._handler(context, remaining)
        flagset.usage()
        raise DispatchExhaustedError(
            f"cannot proceed with arguments {remaining!r}",
            args=tuple(remaining),
            command=self._name,
        )

    def __repr__(self):
        fields = ", ".join(f"{name}={getattr(self, name)!r}" for name in ("name", "usage", "required"))
        return f"Command({fields}, children={list(self._children)!r})"

    def __rich_repr__(self):
        yield "name", self._name
        yield "usage", self._usage, ""
        yield "children", list(self._children), []


def command(source=Unset, /, **metadata):
    """
    Create a Command around a handler, or return a decorator to build it later.

    Invocation modes
    - Direct:    cmd = command(handler, usage="...")
    - Decorator: @command(name="x") def handler(context, args): ...

    Nodes without a handler are built with Command(name, ...) directly.

    Defaults
    - name: the handler's name with underscores turned into dashes.
    - usage: the first paragraph of the handler's docstring.
    """
    @rename("command")
    def wrapper(source, /):
        if not callable(source):
            raise TypeError("@command() must be applied to a callable")
        options = dict(metadata)
        name = options.pop("name", Unset)
        options.setdefault("usage", _summary(source))
        return Command(_command_name(source) if name is Unset else name, handler=source, **options)

    return wrapper(source) if source is not Unset else wrapper


def usage(command, flagset, /):
    """
    Render the help of one command on the flag set's console:

        Usage: tool [options] COMMAND FILE ...

        does things

        Options:
          -verbose
                talk more

        Commands:
          show    print the files

    Customization
    - Define a mapping named __styles__ in __main__ to override any palette entry
      (usage-label, program-name, usage-section, description-section,
      group-label, children, children-description, plus the flag entries of
      FlagSet.defaults).
    """
    styles = defaultdict(str, {
        "usage-label": "bold #00E6FF",  # CYAN → signature info color
        "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
        "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan
        "description-section": "italic #A3A3A3",  # Neutral gray
        "group-label": "bold #FFFFFF",  # Pure white headers
        "children": "bold #36C5F0",  # Sky-blue subcommands
        "children-description": "#9CA3AF",
    } | getattr(__import__("__main__"), "__styles__", {}))

    line = Text.assemble(("Usage:", styles["usage-label"]), " ", (command.name, styles["program-name"]))
    section = " ".join(filter(None, (
        "[options]" if command.flags is not Unset else "",
        "COMMAND" if command.children else "",
        command.usage_args,
    )))
    if section:
        line.append(" ").append(section, styles["usage-section"])

    renders = [line]
    if command.usage:
        renders += [Text(""), Text(command.usage, styles["description-section"])]
    if flagset.visit_all():
        renders += [Text(""), Text("Options:", styles["group-label"]), flagset.defaults()]
    if children := command.children:
        width = max(len(child.name) for child in children)
        renders += [Text(""), Text("Commands:", styles["group-label"])]
        for child in children:
            renders.append(Text.assemble(
                "  ",
                (child.name.ljust(width), styles["children"]),
                "    ",
                (child.usage, styles["children-description"]),
            ))
    flagset.console.print(Group(*renders))


def scoped(factory, /):
    """
    Turn a context manager factory into a command wrapper.

    factory(context) is entered before the rest of the run and exited on every
    path (the continuation's error is visible to __exit__). The value it yields
    is the context handed to the continuation; yielding None keeps the original.

        @contextlib.contextmanager
        def connected(context):
            with open_database() as database:
                yield context.derive(database=database)

        command(name="tool", wrapper=scoped(connected))
    """
    if not callable(factory):
        raise TypeError("scoped() argument must be callable")

    @rename(getattr(factory, "__name__", "scoped"))
    def wrapper(context, proceed, /):
        with factory(context) as scope:
            return proceed(context if scope is None else scope)

    return wrapper


def interruptible(*signals):
    """
    Wrapper cancelling the context handed to the continuation on a signal
    (SIGINT by default). Previous handlers are restored afterwards.

    Must run in the main thread (a limitation of the signal module).
    """
    signals = signals or (signal.SIGINT,)

    @contextlib.contextmanager
    def interrupts(context):
        scope = context.derive()

        def handler(number, frame):
            scope.cancel(f"interrupted by {signal.Signals(number).name}")

        previous = {number: signal.signal(number, handler) for number in signals}
        try:
            yield scope
        finally:
            for number, action in previous.items():
                signal.signal(number, action)
            scope.cancel()

    return scoped(rename(interrupts, "interruptible"))


def invoke(command, prompt=Unset, /, *, context=Unset, environ=Unset, console=Unset):
    """
    Convenience runner for hosting programs.

    Parameters
    - command: the root Command.
    - prompt:
      • Unset: read sys.argv[1:].
      • str: split with shlex.split.
      • Iterable[str]: use items as tokens.

    Behavior
    - Returns the run's result on success.
    - HelpRequested exits with status 0 (usage was already printed).
    - Any other pennant fault is rendered on stderr (rich) and exits with 2.
    - Errors raised by user code propagate unchanged.
    """
    if not isinstance(command, Command):
        raise TypeError("invoke() argument must be a command")
    if prompt is Unset:
        tokens = sys.argv[1:]
    elif isinstance(prompt, str):
        tokens = shlex.split(prompt)
    else:
        tokens = _sanitized(prompt, "invoke()")

    try:
        return command.run(tokens, context, environ=environ)
    except HelpRequested:
        sys.exit(0)
    except (FlagException, FaultGroup) as fault:
        report(fault, console=console)
        sys.exit(2)


__all__ = (
    "Command",
    "command",
    "usage",
    "scoped",
    "interruptible",
    "invoke",
)
