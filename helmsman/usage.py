"""
Helmsman usage rendering.

Builds the help/usage listing for a whole catalog (global arguments and every
module) as plain text. The layout is part of the program's external contract:

    Usage: <prog> <global parameters> <action> <parameters>
    Where global parameters can be:
        Required Parameters:
            -x, --long <hint>    description
        Optional Parameters:
            ...
    Where action can be one of:
        <module>
            Usage:
                <prog> <global parameters> <module> <optional parameters> -i <value> <name>
            Description:
                description
            Required Parameters:
                -i, --identifier <value>    description
                <name>                      description
            Optional Parameters:
                ...

The text is assembled with tab indentation and every tab is expanded into four
spaces before it is returned. Labels are padded to the longest label of their
group. Parsing never depends on this text.
"""
from .utils import *

INDENT = "    "


def placeholder(argument, /):
    """
    invocation placeholder of a required argument in a synopsis line.

    - cardinals render '<name>'.
    - named arguments render their short form (else long form) followed by
      '<hint>', except flags which render the bare form.
    """
    if not argument.forms:
        return "<%s>" % argument.name
    form = argument.short or argument.long
    if argument.kind.hint:
        return "%s <%s>" % (form, argument.kind.hint)
    return form


def synopsis(module, prog, /, *, globals=False):
    """
    synthesized invocation string for a module:
    prog, global marker, module name, optional marker, one placeholder per required argument.
    """
    parts = [prog]
    if globals:
        parts.append("<global parameters>")
    parts.append(module.name)
    if module.optional:
        parts.append("<optional parameters>")
    parts.extend(map(placeholder, module.required))
    return " ".join(parts)


def _listing(arguments, depth, /):
    labels = [argument.label for argument in arguments]
    longest = max(map(len, labels), default=0)
    return "".join(
        "%s%s\t%s\n" % ("\t" * depth, label.ljust(longest), argument.descr or "")
        for label, argument in zip(labels, arguments)
    )


def _section(title, arguments, depth, /):
    if not arguments:
        return ""
    return "%s%s:\n" % ("\t" * depth, title) + _listing(arguments, depth + 1)


def describe(module, prog, /, *, globals=False):
    """
    usage block of one module (tab-indented, not yet expanded).
    """
    descr = str(module.descr or "")
    return "".join((
        "\t%s\n" % module.name,
        "\t\tUsage:\n",
        "\t\t\t%s\n" % synopsis(module, prog, globals=globals),
        "\t\tDescription:\n",
        "\t\t\t%s\n" % descr.replace("\n", "\n\t\t\t"),
        _section("Required Parameters", module.required, 2),
        _section("Optional Parameters", module.optional, 2),
    ))


def render(modules, prog, globals=Unset, /):
    """
    render the full usage text for a catalog.

    parameters
    - modules: Iterable[Module], in catalog order.
    - prog: str, the program name shown in every usage line.
    - globals: Globals | Unset, the global catalog.

    returns
    - str: the usage text with tabs expanded to four spaces.
    """
    result = ""
    if globals:
        result += "Usage: %s <global parameters> <action> <parameters>\n" % prog
        result += "Where global parameters can be:\n"
        result += _section("Required Parameters", globals.required, 1)
        result += _section("Optional Parameters", globals.optional, 1)
    else:
        result += "Usage: %s <action> <parameters>\n" % prog

    result += "Where action can be one of:\n"
    result += "\n".join(describe(module, prog, globals=bool(globals)) for module in modules)

    return result.replace("\t", INDENT)


__all__ = (
    "placeholder",
    "synopsis",
    "describe",
    "render",
)
