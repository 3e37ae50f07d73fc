import logging
import sys
from argparse import Namespace

from solidpod.cli.commands import BaseCommand
from solidpod.utils import read_lines

logger = logging.getLogger(__name__)


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='update',
        aliases=['append'],
        description=(
            'Append entries to a text resource; if no entries are given, '
            'read them from STDIN, one per line'
        )
    )
    parser.add_argument(
        '--conditional',
        help=(
            'only write if the resource has not changed since it was read '
            '(uses the ETag and If-Match headers)'
        ),
        action='store_true',
    )
    parser.add_argument('container', help='name of the container holding the resource')
    parser.add_argument('file', help='name of the resource within the container')
    parser.add_argument('entries', nargs='*', help='entries to append', metavar='ENTRY')
    parser.set_defaults(cmd_name='update')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        entries = args.entries or read_lines(sys.stdin)
        if not args.conditional:
            logger.debug('Unconditional update; concurrent writes to this resource may be lost')
        self.check(
            self.client.update_data_result(args.container, args.file, entries, conditional=args.conditional),
            f'Updating {args.container}/{args.file}',
        )
