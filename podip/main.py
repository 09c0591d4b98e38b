#!/usr/bin/env python3
import argparse
import sys
from .podip import PodIP, PodIPError, UsageError, render


def standalone():
    sys.exit(run())


def run(argv=None):
    """Run the plugin and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command != "ip":
        parser.print_help(sys.stderr)
        return 1
    try:
        if not args.pattern:
            raise UsageError()
        podip = PodIP(args=args)
        pods = podip.find()
    except PodIPError as exc:
        print("error: %s" % exc, file=sys.stderr)
        return 1
    color = sys.stdout.isatty() and not args.no_color
    print(render(pods, args.pattern, color=color))
    return 0


def build_parser():
    """Build the command-line parser"""
    desc = "Helper commands for kubectl."
    parser = argparse.ArgumentParser(prog="kubectl helper", description=desc)
    subparsers = parser.add_subparsers(dest="command")
    ip = subparsers.add_parser(
        "ip",
        help=("List pods containing SEARCH_PATTERN in their name, along" +
              " with IP and node info."),
        description=("List pods containing SEARCH_PATTERN in their name," +
                     " along with IP and node info."))
    ip.add_argument("pattern", metavar="SEARCH_PATTERN", nargs="?",
                    help="case-insensitive substring of the pod name")
    ip.add_argument("-n", "--namespace",
                    help=("Namespace to filter pods. Searches all" +
                          " namespaces if omitted."),
                    default=None)
    ip.add_argument("--kubeconfig",
                    help="Path to the kubeconfig file [$KUBECONFIG]",
                    default=None)
    ip.add_argument("--context",
                    help="kubeconfig context to use [current context]",
                    default=None)
    ip.add_argument("--no-color", action="store_true",
                    help="Do not color the table header")
    ip.add_argument("-d", "--debug", action="store_true",
                    help="enable debugging")
    return parser


if __name__ == "__main__":
    standalone()
