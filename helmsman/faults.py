"""
Helmsman faults (user-facing errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues.
  Codes are grouped by domain to keep copy consistent and make logs/searches predictable.
- CommandException: base type that carries message + options and knows how to render
  itself in a friendly, lowercased, and actionable way.
- ConfigurationError: catalog defects (programmer errors) caught at construction time.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

UX goals
- Position-first messages: token-level messages include the ordinal position so users
  can learn by trying (“at third position”, etc.).
- Soft but technical language: short titles, one-sentence bodies, a single clear hint.
- Lowercased tone with readable styling (configurable via __styles__ in __main__).

Integration
- The parsers raise faults; Catalog.run() surfaces them through Catalog.trigger().
- In non-shell mode, faults are raised; in shell mode, they are rendered via rich on
  stderr, followed by the usage text on stdout, and the process exits.
"""
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)

EXIT_FAILURE = 1


class FaultCode(IntEnum):
    """
    canonical fault codes used across the cli (stable identifiers).

    grouping (by high-level domain)
    - routing (111xx)
      • UNKNOWN_TOKEN, EMPTY_TOKEN, MISSING_ACTION
    - values (112xx)
      • INVALID_VALUE, MISSING_VALUE
    - arity (113xx)
      • MISSING_REQUIRED
    - delegated errors (114xx)
      • DELEGATED_ERROR

    normalize() allows host remapping to custom labels while keeping code-stability.
    """
    # --- routing errors ---
    UNKNOWN_TOKEN               = 11101
    EMPTY_TOKEN                 = 11102
    MISSING_ACTION              = 11103

    # --- value errors ---
    INVALID_VALUE               = 11201
    MISSING_VALUE               = 11202

    # --- arity errors ---
    MISSING_REQUIRED            = 11301

    # --- delegated errors ---
    DELEGATED_ERROR             = 11401

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ConfigurationError(Exception):
    """
    a defect in the declared catalog (not a user input problem).

    raised while building arguments, modules, globals or catalogs, so a malformed
    catalog aborts program startup before any token is parsed.
    """


class CommandException(Exception):
    """
    base of every user-facing fault.

    options (merged through __replace__ before triggering)
    - tool: the Catalog surfacing the fault (program name, usage printer).
    - shell: print and exit instead of raising.
    - fancy: render inside a rich Panel.
    - colorful: apply the palette.
    - usage: print the catalog usage after the fault (shell mode only).
    - title, code, hint, docs: rendering metadata.
    - any other context (token, index, argument, module, exception).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message)

    def __rich__(self):
        main = __import__("__main__")

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

        colorful = self.options.get("colorful", False)
        fancy = self.options.get("fancy", False)

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        tool = self.options.get("tool")
        prog = text(tool.prog if tool else getattr(main, "__prog__", "app"), styler("prog-name"))

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(self.options.get("code", FaultCode.DELEGATED_ERROR).normalize(), styler("code")),
            " | ",
            text(self.options.get("title", "error").title(), styler("error-title")),
            " ]"
        )
        message = text(self.message, styler("error-message"))

        renders = [message]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if fancy:
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self) -> None:
        if not self.options.get("shell"):
            raise self from None
        console.print(self)
        if self.options.get("usage") and (tool := self.options.get("tool")):
            tool.print_usage()
        sys.exit(EXIT_FAILURE)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnknownTokenError(CommandException): ...
class EmptyTokenError(CommandException): ...
class MissingActionError(CommandException): ...
class InvalidValueError(CommandException): ...
class MissingValueError(CommandException): ...
class MissingRequiredError(CommandException): ...
class DelegatedCommandError(CommandException): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via rich console; otherwise, the fault is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    returns None when no documentation is registered.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "EXIT_FAILURE",
    "FaultCode",
    "ConfigurationError",
    "CommandException",
    "UnknownTokenError",
    "EmptyTokenError",
    "MissingActionError",
    "InvalidValueError",
    "MissingValueError",
    "MissingRequiredError",
    "DelegatedCommandError",
    "trigger",
    "getdoc",
)
