"""
Helmsman parsing: turn argv into per-pass parsed argument sets.

What this module provides
- ParsedArguments: the parsed result set of one scope (a module or the globals).
  It keeps two ordered collections, required and optional, holding the specs that
  received a value during the pass, plus the values themselves keyed by spec.
- scan_globals(): the global argument scanner. Consumes leading tokens against the
  global catalog until a module name is recognized.
- parse_module(): the module argument parser. Consumes the remaining tokens against
  the selected module's required/optional specs.

Rules (both scanners work left to right, one token at a time)
- A flagged, value-bearing argument makes the *next* token its value.
- A flag (Kind.FLAG) is set to True on sight and consumes nothing.
- Flags always win over positional matching: a token spelling a flag form is the flag.
- Re-matching an argument moves it to the end of its collection and its last value wins.
- Positional slots are filled in declaration order; the current token *is* the value.

Faults
- Every user-facing problem is raised as a CommandException subclass carrying
  title/code/hint/docs plus the offending token and its argv index. Nothing is
  printed here; Catalog.run() decides how faults surface.
"""
import difflib

from .arguments import Argument, Kind
from .faults import *
from .utils import *


class ParsedArguments:
    """
    Parsed result set of one scope for one parse pass.

    Collections
    - required / optional: specs that received a value, in match order.

    Lookup
    - parsed["--identifier"], parsed["-i"], parsed["dmg"] or parsed[spec]
      → the supplied value, else the declared default, else None (False for flags).
    - parsed.get(key, default=None) → same, but returns `default` when the argument
      was neither supplied nor given a declared default (flags still resolve to False).
    - key in parsed → whether the argument was supplied during this pass.
    - keys that are not declared in the scope raise KeyError (get returns `default`).
    """

    def __init__(self, required=(), optional=()):
        self._declared = (tuple(required), tuple(optional))
        self._required = []
        self._optional = []
        self._values = {}

    @property
    def required(self):
        return tuple(self._required)

    @property
    def optional(self):
        return tuple(self._optional)

    @property
    def declared(self):
        """
        every spec of the scope, required first, in declaration order.
        """
        return self._declared[0] + self._declared[1]

    def place(self, argument, /, *, required):
        """
        move `argument` to the end of its collection (dedup-by-removal-then-append).
        """
        collection = self._required if required else self._optional
        if argument in collection:
            collection.remove(argument)
        collection.append(argument)

    def assign(self, argument, value, /, *, required):
        """
        record `value` for `argument` and place it at the end of its collection.
        """
        self.place(argument, required=required)
        self._values[argument] = value

    def resolved(self, argument, /):
        """
        whether the argument has a value for this pass (supplied or declared default).
        """
        return argument in self._values or argument.hasdefault

    def lookup(self, key, /):
        """
        find the declared spec for a key (spec, bare name, short or long form).
        """
        for argument in self.declared:
            if isinstance(key, Argument):
                if argument == key:
                    return argument
            elif isinstance(key, str) and key in (argument.name, argument.short, argument.long):
                return argument
        raise KeyError(key)

    def get(self, key, default=None, /):
        try:
            argument = self.lookup(key)
        except KeyError:
            return default
        if argument in self._values:
            return self._values[argument]
        if argument.hasdefault or argument.kind is Kind.FLAG:
            return argument.default
        return default

    def __getitem__(self, key):
        argument = self.lookup(key)
        return self._values.get(argument, argument.default)

    def __contains__(self, key):
        try:
            return self.lookup(key) in self._values
        except KeyError:
            return False

    def __iter__(self):
        yield from self._required
        yield from self._optional

    def __len__(self):
        return len(self._required) + len(self._optional)

    def __rich_repr__(self):
        for argument in self:
            yield argument.key, self._values.get(argument)

    def __repr__(self):
        return "parsed-arguments(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


def _coerce(argument, token, index, /):
    """
    coerce a token for an argument, raising InvalidValueError on failure.
    """
    try:
        return argument.coerce(token)
    except ValueError as error:
        raise InvalidValueError(
            "value %r passed to %s at %s position is not a %s" % (
                token, argument.key if argument.forms else argument.label, ordinal(index), argument.kind.hint
            ),
            title="invalid value",
            code=FaultCode.INVALID_VALUE,
            hint=str(error),
            token=token,
            index=index,
            argument=argument,
            docs=getdoc(FaultCode.INVALID_VALUE)
        ) from error


def _missing_value(argument, token, /):
    return MissingValueError(
        "missing value for %r" % token,
        title="missing value",
        code=FaultCode.MISSING_VALUE,
        hint="pass a <%s> right after %r" % (argument.kind.hint, token),
        token=token,
        argument=argument,
        docs=getdoc(FaultCode.MISSING_VALUE)
    )


def _suggest(token, candidates, /):
    try:
        return "did you mean %r?" % difflib.get_close_matches(token, candidates, 1)[0]
    except IndexError:
        return None


def scan_globals(tokens, modules, globals=Unset, /):
    """
    consume leading argv tokens against the global catalog until a module name appears.

    parameters
    - tokens: Sequence[str], a full argv (index 0 is the program name, never scanned).
    - modules: Mapping[str, Module], the declared modules by name.
    - globals: Globals | Unset, the global catalog (Unset when none is configured).

    returns
    - (module, index, parsed) where index is the argv index of the first token after
      the module name and parsed is the ParsedArguments of the global scope.

    raises
    - InvalidValueError, EmptyTokenError, UnknownTokenError, MissingRequiredError,
      MissingValueError, MissingActionError (see module docstring).
    """
    required = coalesce(getattr(globals, "required", Unset), ())
    optional = coalesce(getattr(globals, "optional", Unset), ())
    parsed = ParsedArguments(required, optional)

    pending = None  # (argument, flag token, wasRequired)

    for index in range(1, len(tokens)):
        token = tokens[index]

        if pending:
            argument, _, scope = pending
            parsed.assign(argument, _coerce(argument, token, index), required=scope)
            pending = None
            continue

        if not token:
            raise EmptyTokenError(
                "empty argument at %s position" % ordinal(index),
                title="empty argument",
                code=FaultCode.EMPTY_TOKEN,
                hint="remove the empty argument or quote a real value",
                token=token,
                index=index,
                docs=getdoc(FaultCode.EMPTY_TOKEN)
            )

        match = None
        for scope, arguments in ((True, required), (False, optional)):
            for argument in arguments:
                if argument.matches(token):
                    match = argument, token, scope
                    break
            if match:
                break

        if match:
            argument, _, scope = match
            if argument.kind is not Kind.FLAG:
                pending = match
            else:
                parsed.assign(argument, True, required=scope)
            continue

        if token in modules:
            for argument in required:
                if not parsed.resolved(argument):
                    raise MissingRequiredError(
                        "required argument %r not specified" % argument.key,
                        title="missing required argument",
                        code=FaultCode.MISSING_REQUIRED,
                        hint="pass %s before %r" % (argument.label, token),
                        token=token,
                        index=index,
                        argument=argument,
                        docs=getdoc(FaultCode.MISSING_REQUIRED)
                    )
            return modules[token], index + 1, parsed

        candidates = list(modules) + [form for argument in parsed.declared for form in argument.forms]
        raise UnknownTokenError(
            "unknown argument or action %r at %s position" % (token, ordinal(index)),
            title="unknown argument",
            code=FaultCode.UNKNOWN_TOKEN,
            hint=_suggest(token, candidates) or "pick one of the actions listed below",
            token=token,
            index=index,
            docs=getdoc(FaultCode.UNKNOWN_TOKEN)
        )

    if pending:
        argument, token, _ = pending
        raise _missing_value(argument, token)

    raise MissingActionError(
        "missing action",
        title="missing action",
        code=FaultCode.MISSING_ACTION,
        hint="pick one of: %s" % ", ".join(modules) if modules else None,
        docs=getdoc(FaultCode.MISSING_ACTION)
    )


def parse_module(module, tokens, start, /):
    """
    consume argv tokens from `start` against a module's required/optional specs.

    matching order per token
    1. a value is pending → the token is that value.
    2. a required flag form → place in required (value follows unless it is a flag).
    3. an optional flag form → place in optional (value follows unless it is a flag).
    4. the first required cardinal still without a value → the token is its value.
    5. anything else → UnknownTokenError.

    after the scan
    - a pending value → MissingValueError.
    - fewer required specs than declared → MissingRequiredError ("not enough arguments").

    returns
    - ParsedArguments of the module scope.
    """
    parsed = ParsedArguments(module.required, module.optional)

    pending = None  # (argument, flag token, wasRequired)

    for index in range(start, len(tokens)):
        token = tokens[index]

        if pending:
            argument, _, scope = pending
            parsed.assign(argument, _coerce(argument, token, index), required=scope)
            pending = None
            continue

        match = None
        for scope, arguments in ((True, module.required), (False, module.optional)):
            for argument in arguments:
                if argument.matches(token):
                    match = argument, token, scope
                    break
            if match:
                break

        if match:
            argument, _, scope = match
            parsed.place(argument, required=scope)
            if argument.kind is not Kind.FLAG:
                pending = match
            else:
                parsed.assign(argument, True, required=scope)
            continue

        for argument in module.required:
            if not argument.forms and argument not in parsed:
                parsed.assign(argument, _coerce(argument, token, index), required=True)
                break
        else:
            candidates = [form for argument in parsed.declared for form in argument.forms]
            raise UnknownTokenError(
                "unknown argument %r at %s position" % (token, ordinal(index)),
                title="unknown argument",
                code=FaultCode.UNKNOWN_TOKEN,
                hint=_suggest(token, candidates) or "check the parameters of %r below" % module.name,
                token=token,
                index=index,
                module=module,
                docs=getdoc(FaultCode.UNKNOWN_TOKEN)
            )

    if pending:
        argument, token, _ = pending
        raise _missing_value(argument, token)

    if len(parsed.required) != len(module.required):
        missing = [argument.label for argument in module.required if argument not in parsed.required]
        raise MissingRequiredError(
            "not enough arguments for %r: missing %s" % (module.name, ", ".join(missing)),
            title="not enough arguments",
            code=FaultCode.MISSING_REQUIRED,
            hint="pass %s" % " and ".join(missing),
            module=module,
            docs=getdoc(FaultCode.MISSING_REQUIRED)
        )

    return parsed


__all__ = (
    "ParsedArguments",
    "scan_globals",
    "parse_module",
)
