import sys
from argparse import Namespace

from solidpod.cli.commands import BaseCommand
from solidpod.utils import read_lines


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='publish',
        description=(
            'Replace the contents of a text resource with the given entries; '
            'if no entries are given, read them from STDIN, one per line'
        )
    )
    parser.add_argument('container', help='name of the container holding the resource')
    parser.add_argument('file', help='name of the resource within the container')
    parser.add_argument('entries', nargs='*', help='entries to write', metavar='ENTRY')
    parser.set_defaults(cmd_name='publish')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        entries = args.entries or read_lines(sys.stdin)
        self.check(
            self.client.publish_data_result(args.container, args.file, entries),
            f'Publishing to {args.container}/{args.file}',
        )
