import os

from rich.pretty import pprint

from helmsman import *

__prog__ = "cryptexctl"

catalog = Catalog(
    globals=Globals(optional=[
        Option("-u", "--udid", descr="UDID of the device to talk to"),
        Flag("-d", "--debug", descr="Print the parsed arguments before running"),
    ]),
    shell=True,
    colorful=True,
)


@catalog.recover(FileExistsError)
def _(error):
    return "%s already exists, remove it first" % error.filename


@catalog.module(
    "buildTrustCache",
    descr="Build a trust cache listing every file of a directory",
    required=[
        Cardinal("directory", kind=Kind.FOLDER_PATH, descr="Path to directory used for trust cache generation"),
        Cardinal("trustcache", kind=Kind.OUTPUT_FILE_PATH, descr="Output"),
    ],
    optional=[
        Flag("-i", "--im4p", descr="Wrap the trust cache in an IM4P container"),
    ],
)
def build_trust_cache(arguments, globals):
    if globals["--debug"]:
        pprint(arguments)
    if os.path.exists(arguments["trustcache"]):
        raise FileExistsError(17, "file exists", arguments["trustcache"])
    with open(arguments["trustcache"], "w") as stream:
        for root, _, files in os.walk(arguments["directory"]):
            for file in sorted(files):
                print(os.path.relpath(os.path.join(root, file), arguments["directory"]), file=stream)


@catalog.module(
    "uninstall",
    descr="Uninstall a cryptex\nthe cryptex must not be in use",
    required=[
        Cardinal("cryptex id", descr="Identifier of the cryptex to be uninstalled"),
    ],
)
def uninstall(arguments, globals):
    pprint({"udid": globals["--udid"], "uninstall": arguments["cryptex id"]})


@catalog.module("list", descr="List installed cryptexes")
def listing(arguments, globals):
    pprint({"udid": globals["--udid"], "cryptexes": []})


if __name__ == '__main__':
    raise SystemExit(catalog.run())
