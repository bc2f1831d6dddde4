"""
Helmsman catalog layer: declare modules, parse argv, dispatch handlers.

What this module provides
- Module: a named subcommand with ordered required/optional argument specs and a
  handler. Handlers receive (arguments, globals) and return None (or an int exit
  status) on success; any exception they raise is a domain error.
- Globals: the global argument catalog, recognized before the module name. Every
  global argument must carry a short and/or long flag form.
- Catalog: the static catalog of modules plus optional globals, with
  parse/dispatch/run, usage rendering and domain error recovery.
- module(...): decorator factory building a Module from a handler function.

Quick start
    from helmsman import Catalog, Cardinal, Option, Flag, Globals, Kind

    catalog = Catalog(globals=Globals(optional=[Option("-u", "--udid", descr="UDID of the device")]),
                      shell=True)

    @catalog.module("convert", descr="Convert a file",
                    required=[Option("-n", "--name", descr="Output name"),
                              Cardinal("src", kind=Kind.FILE_PATH, descr="Input file")])
    def convert(arguments, globals):
        print(arguments["--name"], arguments["src"])

    if __name__ == "__main__":
        raise SystemExit(catalog.run())

Lifecycle
- Modules and globals are validated when constructed; a malformed catalog raises
  ConfigurationError before any token is parsed.
- Every parse pass builds fresh ParsedArguments, so a catalog can be parsed and
  dispatched any number of times in one process.
"""
import builtins
import collections
import os
import sys

from rich.console import Console
from rich.text import Text

from . import usage
from .arguments import Argument
from .faults import *
from .faults import trigger as _trigger
from .parsing import scan_globals, parse_module
from .utils import *

Invocation = collections.namedtuple("Invocation", (
    "module",
    "arguments",
    "globals",
))


def _sanitize_arguments(owner, required, optional, /, *, named):
    """
    validate the argument lists of a module or of the globals.

    - every entry must be an argument spec, declared once.
    - optional arguments (and every global argument, when `named`) need a flag form.
    - flag forms and cardinal names must be unique within the scope.
    """
    required = tuple(required)
    optional = tuple(optional)
    seen = set()
    forms = {}

    for scope, arguments in (("required", required), ("optional", optional)):
        for argument in arguments:
            if not isinstance(argument, Argument):
                raise ConfigurationError(f"{owner} {scope} arguments must be argument specs, got {argument!r}")
            if argument in seen:
                raise ConfigurationError(f"{owner} declares {argument.key!r} more than once")
            seen.add(argument)
            if not argument.forms and (named or scope == "optional"):
                raise ConfigurationError(
                    f"{owner} {scope} argument {argument.name!r} must have a short and/or long version"
                )
            for form in argument.forms or ("<%s>" % argument.name,):
                if form in forms:
                    raise ConfigurationError(f"{owner} uses {form!r} for more than one argument")
                forms[form] = argument

    return required, optional


class Module:
    """
    Named subcommand: name, description, ordered required/optional specs and a handler.

    Properties (read-only)
    - name, descr, handler, required, optional.

    Calling a module forwards to its handler: module(arguments, globals).
    """

    def __init__(self, name, handler, /, descr=Unset, required=(), optional=()):
        if not isinstance(name, str) or not name.strip() or any(char.isspace() for char in name):
            raise ConfigurationError(f"module name must be a non-empty word, got {name!r}")
        if not callable(handler):
            raise ConfigurationError(f"module {name!r} handler must be callable")
        if not isinstance(descr, str | Text | Unset):
            raise ConfigurationError(f"module {name!r} 'descr' must be a string")
        self._name = name
        self._handler = handler
        self._descr = coalesce(descr)
        self._required, self._optional = _sanitize_arguments(
            "module %r" % name, required, optional, named=False
        )

    name = mirror("name")
    descr = mirror("descr")
    handler = mirror("handler")
    required = mirror("required")
    optional = mirror("optional")

    def __call__(self, arguments, globals=None, /):
        return self._handler(arguments, globals)

    def __rich_repr__(self):
        yield "name", self.name
        yield "descr", self.descr
        yield "required", self.required
        yield "optional", self.optional

    def __repr__(self):
        return "module(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


class Globals:
    """
    Global argument catalog (recognized before the module name).

    Every global argument, required or optional, must carry a short and/or long
    form; bare positional names are rejected with ConfigurationError.
    """

    def __init__(self, required=(), optional=()):
        self._required, self._optional = _sanitize_arguments(
            "globals", required, optional, named=True
        )

    required = mirror("required")
    optional = mirror("optional")

    def __rich_repr__(self):
        yield "required", self.required
        yield "optional", self.optional

    def __repr__(self):
        return "globals(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


def module(name, /, descr=Unset, required=(), optional=()):
    """
    decorator factory: build a Module from the decorated handler.

        @module("list", descr="List installed cryptexes")
        def listing(arguments, globals): ...
    """

    @rename("module")
    def wrapper(handler, /):
        return Module(name, handler, descr, required, optional)

    return wrapper


class Catalog:
    """
    Static catalog of modules plus optional globals.

    Parameters
    - modules: Iterable[Module], in the order they are listed in usage.
    - globals: Globals | Unset.
    - prog: str | Unset, program name for usage and faults. When Unset, a __prog__
      attribute of __main__ is used, else the basename of sys.argv[0].
    - shell: print faults and exit instead of raising them.
    - colorful, fancy: fault presentation (palette, rich panel).

    Entry points
    - parse(argv) → Invocation (raises faults).
    - dispatch(invocation) → exit status (handler exceptions propagate).
    - run(argv) → exit status, with faults and domain errors surfaced through trigger().
    """

    def __init__(self, modules=(), globals=Unset, *, prog=Unset, shell=False, colorful=False, fancy=False):
        if not isinstance(globals, Globals | Unset):
            raise ConfigurationError("catalog 'globals' must be a Globals instance")
        if not isinstance(prog, str | Unset):
            raise ConfigurationError("catalog 'prog' must be a string")
        self._modules = {}
        self._globals = globals
        self._prog = prog
        self._shell = bool(shell)
        self._colorful = bool(colorful)
        self._fancy = bool(fancy)
        self._recoveries = {}
        for object in modules:
            self.add(object)

    modules = mirror("modules")
    shell = mirror("shell")
    colorful = mirror("colorful")
    fancy = mirror("fancy")

    @property
    def globals(self):
        return coalesce(self._globals)

    @property
    def prog(self):
        if self._prog:
            return self._prog
        if prog := getattr(__import__("__main__"), "__prog__", None):
            return prog
        return os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "app"

    def add(self, module, /):
        """
        register a module; names must be unique within the catalog.
        """
        if not isinstance(module, Module):
            raise ConfigurationError(f"catalog modules must be Module instances, got {module!r}")
        if self._modules.setdefault(module.name, module) is not module:
            raise ConfigurationError(f"module name {module.name!r} is already in use")
        return module

    def module(self, name, /, descr=Unset, required=(), optional=()):
        """
        decorator: build a Module from the handler and register it.
        """

        @rename("module")
        def wrapper(handler, /):
            return self.add(Module(name, handler, descr, required, optional))

        return wrapper

    def recover(self, *types):
        """
        decorator: map domain exceptions to user-facing messages.

        the decorated function receives the exception and returns the message. on
        dispatch failure, the exception's MRO is walked and the first registered
        type wins; unregistered exceptions get a generic "unhandled exception" message.

            @catalog.recover(ConnectionError)
            def _(error):
                return "couldn't connect to the device - make sure it is available"
        """
        if not types or not all(isinstance(type, builtins.type) and issubclass(type, Exception) for type in types):
            raise ConfigurationError("recover() arguments must be exception types")

        @rename("recover")
        def wrapper(function, /):
            if not callable(function):
                raise ConfigurationError("@recover() must be applied to a callable")
            for type in types:
                self._recoveries[type] = function
            return function

        return wrapper

    def usage(self):
        """
        the full usage text (tabs already expanded).
        """
        return usage.render(self._modules.values(), self.prog, self._globals)

    def print_usage(self):
        Console(highlight=False).print(Text(self.usage()), soft_wrap=True, end="")

    def trigger(self, fault, /, **options):
        """
        surface a fault with this catalog's runtime options.

        in shell mode the fault is printed (followed by the usage when usage=True)
        and the process exits with EXIT_FAILURE; otherwise the fault is raised.
        """
        _trigger(fault, **options, tool=self, shell=self.shell, fancy=self.fancy, colorful=self.colorful)

    def parse(self, argv=Unset, /):
        """
        scan globals, select the module and parse its arguments.

        returns an Invocation(module, arguments, globals); globals is None when the
        catalog has no global arguments configured. raises CommandException faults.
        """
        tokens = list(coalesce(argv, sys.argv))
        module, start, globals = scan_globals(tokens, self._modules, self._globals)
        arguments = parse_module(module, tokens, start)
        return Invocation(module, arguments, globals if self._globals else None)

    def dispatch(self, invocation, /):
        """
        invoke the selected module's handler synchronously and return the exit status.
        """
        status = invocation.module(invocation.arguments, invocation.globals)
        return 0 if status is None else int(status)

    def explain(self, exception, /):
        """
        message for a domain exception: a registered recovery, else a generic report.
        """
        for type in builtins.type(exception).__mro__:
            if function := self._recoveries.get(type):
                return str(function(exception))
        return "an unhandled exception occurred: %s: %s" % (builtins.type(exception).__name__, exception)

    def run(self, argv=Unset, /):
        """
        parse, dispatch and surface any failure.

        returns the handler's exit status. parse faults are triggered with usage;
        domain errors are triggered as DelegatedCommandError without usage.
        """
        try:
            invocation = self.parse(argv)
        except CommandException as fault:
            return self._fail(fault, usage=True)

        try:
            return self.dispatch(invocation)
        except CommandException as fault:
            return self._fail(fault, usage=False)
        except Exception as exception:
            registered = any(type in self._recoveries for type in builtins.type(exception).__mro__)
            return self._fail(DelegatedCommandError(
                self.explain(exception),
                title="command failed" if registered else "unhandled error",
                code=FaultCode.DELEGATED_ERROR,
                hint=None if registered else "check additional logs for more details",
                module=invocation.module,
                exception=exception,
                docs=getdoc(FaultCode.DELEGATED_ERROR)
            ), usage=False)

    def _fail(self, fault, /, *, usage):
        self.trigger(fault, usage=usage)
        return EXIT_FAILURE

    def __rich_repr__(self):
        yield "prog", self.prog
        yield "modules", tuple(self._modules)
        yield "globals", self.globals
        yield "shell", self.shell

    def __repr__(self):
        return "catalog(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


__all__ = (
    "Invocation",
    "Module",
    "Globals",
    "Catalog",
    "module",
)
