r"""
Helmsman argument specifications and type coercion.

Overview
- Kind
  • Closed set of value kinds an argument may declare (string, numbers, flag, paths).
  • Each kind carries its usage hint ("value", "number", "file path", ...) and
    knows how to coerce a raw token into a typed value (Kind.coerce).

- Specs
  • Cardinal: positional argument identified by a bare name (e.g. <dmg>).
  • Option: flagged, value-bearing argument with a short and/or long form (-i/--identifier).
  • Flag: flagged, presence-only argument; its value is True when present.

Identity and state
- Specs are immutable declarations. Each one receives a process-unique `ident`
  at construction; equality and hashing use it, so two specs with the same
  description are still distinct.
- Specs never hold parsed values. A parse pass records values in its own
  ParsedArguments (see helmsman.parsing), so one catalog can be parsed any
  number of times.

Validation highlights
- Flag forms must match r"--?[^\W\d_](-?[^\W_]+)*"; a form starting with "--"
  is the long form, any other is the short form. At most one of each.
- A Cardinal name must be non-empty and must not look like a flag.
- A Cardinal cannot be of kind FLAG (it would never consume its token), nor an
  Option; both are catalog defects raised as ConfigurationError.

Examples
    >>> identifier = Option("-i", "--identifier", descr="The identifier of the cryptex")
    >>> dmg = Cardinal("dmg", kind=Kind.FILE_PATH, descr="Path to cryptex dmg")
    >>> im4p = Flag("-i", "--im4p", descr="Wrap trust cache in an IM4P container")
    >>> Kind.INT.coerce("0x1f")
    31
"""
import functools
import itertools
import operator
import os
import re
from enum import Enum

from rich.text import Text

from .faults import ConfigurationError
from .utils import *

# Declaration counter backing Argument.ident (process-wide, monotonically increasing).
_idents = itertools.count(1)


def _coerce_string(token):
    return token


def _coerce_int(token):
    if re.fullmatch(r"[+-]?[0-9]+", token):
        return int(token, 10)
    if token.startswith("0x") and re.fullmatch(r"[0-9A-Fa-f]+", token[2:]):
        return int(token[2:], 16)
    raise ValueError("not a decimal or 0x-prefixed hexadecimal integer: %r" % token)


def _coerce_uint(token):
    if re.fullmatch(r"[0-9]+", token):
        return int(token, 10)
    raise ValueError("not a non-negative decimal integer: %r" % token)


def _coerce_flag(token):
    return True


def _coerce_file_path(token):
    if not os.path.exists(token):
        raise ValueError("file does not exist: %r" % token)
    if os.path.isdir(token):
        raise ValueError("path is a directory: %r" % token)
    return token


def _coerce_output_file_path(token):
    if os.path.isdir(token):
        raise ValueError("path is a directory: %r" % token)
    return token


def _coerce_folder_path(token):
    if not os.path.exists(token):
        raise ValueError("folder does not exist: %r" % token)
    if not os.path.isdir(token):
        raise ValueError("path is not a directory: %r" % token)
    return token


def _coerce_output_folder_path(token):
    if os.path.exists(token):
        if not os.path.isdir(token):
            raise ValueError("path is not a directory: %r" % token)
        return token
    try:
        # exactly this directory, parents are never created
        os.mkdir(token)
    except OSError as error:
        raise ValueError("failed to create output folder %r: %s" % (token, error.strerror or error)) from error
    return token


class Kind(Enum):
    """
    closed set of value kinds an argument may declare.

    every member maps to a coercion function and a usage hint:
    - STRING             → token verbatim                          ("value")
    - INT                → decimal, or 0x-prefixed hexadecimal     ("number")
    - UINT               → non-negative decimal                    ("number")
    - FLAG               → True, presence only                     ("")
    - FILE_PATH          → existing, non-directory path            ("file path")
    - OUTPUT_FILE_PATH   → any path that is not a directory        ("output file path")
    - FOLDER_PATH        → existing directory                      ("folder path")
    - OUTPUT_FOLDER_PATH → directory, created when absent          ("output folder path")
    """
    STRING = "string"
    INT = "int"
    UINT = "uint"
    FLAG = "flag"
    FILE_PATH = "file-path"
    OUTPUT_FILE_PATH = "output-file-path"
    FOLDER_PATH = "folder-path"
    OUTPUT_FOLDER_PATH = "output-folder-path"

    @property
    def hint(self):
        """
        short type label used in usage text and fault messages.
        """
        return _hints[self]

    def coerce(self, token, /):
        """
        convert a raw token into a typed value for this kind.

        raises ValueError when the token cannot be coerced; OUTPUT_FOLDER_PATH
        may create the directory as a side effect.
        """
        if not isinstance(token, str):
            raise TypeError("coerce() argument must be a string")
        return _coercers[self](token)


_hints = {
    Kind.STRING: "value",
    Kind.INT: "number",
    Kind.UINT: "number",
    Kind.FLAG: "",
    Kind.FILE_PATH: "file path",
    Kind.OUTPUT_FILE_PATH: "output file path",
    Kind.FOLDER_PATH: "folder path",
    Kind.OUTPUT_FOLDER_PATH: "output folder path",
}

_coercers = {
    Kind.STRING: _coerce_string,
    Kind.INT: _coerce_int,
    Kind.UINT: _coerce_uint,
    Kind.FLAG: _coerce_flag,
    Kind.FILE_PATH: _coerce_file_path,
    Kind.OUTPUT_FILE_PATH: _coerce_output_file_path,
    Kind.FOLDER_PATH: _coerce_folder_path,
    Kind.OUTPUT_FOLDER_PATH: _coerce_output_folder_path,
}


class ArgumentType(type):
    """
    Metaclass giving every spec class stable introspection.

    Responsibilities
    - Expose the names listed in __introspectable__ as read-only properties (via mirror()).
    - Derive __typename__ from the class name ("Cardinal" → "cardinal").
    - Provide __repr__/__rich_repr__ built from __introspectable__.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ()) if name not in namespace
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_descr(cls, descr, /):
    if not isinstance(descr, str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    if isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    return coalesce(descr)


def _sanitize_names(cls, names, /):
    """
    split flag forms into (short, long) and validate them.

    - at least one form is required.
    - forms must be shell-style option names (unicode letters allowed).
    - a form starting with '--' is long; any other form is short.
    - at most one short and one long form.
    """
    short = long = None
    if not names:
        raise TypeError(f"{cls.__typename__} must specify at least one name")
    for name in names:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} names cannot be empty-strings")
        elif not re.fullmatch(r"--?[^\W\d_](-?[^\W_]+)*", name):
            raise ValueError(f"{cls.__typename__} names must be valid shell-style option names (unicodes are allowed)")
        elif name.startswith("--"):
            if long is not None:
                raise ValueError(f"{cls.__typename__} cannot have more than one long name")
            long = name
        else:
            if short is not None:
                raise ValueError(f"{cls.__typename__} cannot have more than one short name")
            short = name
    return short, long


class Argument(metaclass=ArgumentType):
    """
    Common base of every argument specification.

    Not meant to be instantiated directly; use Cardinal, Option or Flag.
    """
    __introspectable__ = ()

    def __init__(self, kind, descr, default, /):
        if not isinstance(kind, Kind):
            raise TypeError(f"{type(self).__typename__} 'kind' must be a Kind")
        self._ident = next(_idents)
        self._kind = kind
        self._descr = _sanitize_descr(type(self), descr)
        self._default = default

    @property
    def ident(self):
        """
        process-unique declaration index (identity used for equality and hashing).
        """
        return self._ident

    @property
    def hasdefault(self):
        """
        whether a default was declared (a declared None still counts).
        """
        return self._default is not Unset

    @property
    def forms(self):
        """
        flag forms accepted on the command line, short first.
        """
        return tuple(form for form in (self.short, self.long) if form)

    @property
    def key(self):
        """
        preferred lookup/report name: long form, else short form, else bare name.
        """
        return self.long or self.short or self.name

    @property
    def label(self):
        """
        usage label: '<name>' for cardinals, '-x, --name <hint>' for named arguments.
        """
        if not self.forms:
            return "<%s>" % self.name
        label = ", ".join(self.forms)
        if self.kind.hint:
            label += " <%s>" % self.kind.hint
        return label

    def matches(self, token, /):
        """
        whether a raw token spells one of this argument's flag forms.
        """
        return token in self.forms

    def coerce(self, token, /):
        return self.kind.coerce(token)

    def __eq__(self, other):
        if not isinstance(other, Argument):
            return NotImplemented
        return self._ident == other._ident

    def __hash__(self):
        return hash((Argument, self._ident))


class Cardinal(Argument):
    """
    Positional argument identified by a bare name.

    A cardinal's value is the token that fills its slot; it never carries a
    flag form. Positional slots are filled in declaration order, so the
    order of cardinals in a module's required list is the order users type them.

    Properties
    - name, kind, descr (read-only); short/long are always None and a cardinal
      has no default (it is always required).
    """

    __introspectable__ = (
        "name",
        "kind",
        "descr",
    )

    def __init__(self, name, /, kind=Kind.STRING, descr=Unset):
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} name must be a string")
        elif not (name := name.strip()):
            raise ValueError(f"{type(self).__typename__} name cannot be empty")
        elif name.startswith("-"):
            raise ValueError(f"{type(self).__typename__} name cannot look like a flag (use an option instead)")
        if kind is Kind.FLAG:
            raise ConfigurationError(f"{type(self).__typename__} cannot be a flag (it would never consume its token)")
        super().__init__(kind, descr, Unset)
        self._name = name

    @property
    def short(self):
        return None

    @property
    def long(self):
        return None

    @property
    def default(self):
        return None


class Option(Argument):
    """
    Flagged, value-bearing argument with a short and/or long form.

    The token following the flag is its value, e.g. `--identifier com.example`.
    Repeating an option keeps the last value.

    Properties
    - short, long, kind, descr, default (read-only); name is always None.
    """

    __introspectable__ = (
        "short",
        "long",
        "kind",
        "descr",
        "default",
    )

    def __init__(self, *names, kind=Kind.STRING, descr=Unset, default=Unset):
        if kind is Kind.FLAG and not isinstance(self, Flag):
            raise ConfigurationError(f"{type(self).__typename__} cannot be of kind FLAG (use a flag instead)")
        self._short, self._long = _sanitize_names(type(self), names)
        super().__init__(kind, descr, default)
        self._name = None

    @property
    def name(self):
        return None

    @property
    def default(self):
        return coalesce(self._default)


class Flag(Option):
    """
    Flagged, presence-only argument.

    A flag consumes no following token; its presence yields True and its
    absence resolves to False at lookup time. A flag declares no default, so
    a required flag is only satisfied by appearing on the command line.
    """

    __introspectable__ = (
        "short",
        "long",
        "descr",
    )

    def __init__(self, *names, descr=Unset):
        super().__init__(*names, kind=Kind.FLAG, descr=descr)

    @property
    def default(self):
        return False


__all__ = (
    # Kinds
    "Kind",

    # Specifications
    "Argument",
    "Cardinal",
    "Option",
    "Flag",
)
