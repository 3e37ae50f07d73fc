import logging
from argparse import Namespace

from solidpod.cli.commands import BaseCommand

logger = logging.getLogger(__name__)


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='mkcontainer',
        aliases=['mkcol'],
        description='Create containers in the pod, skipping any that already exist'
    )
    parser.add_argument(
        'names', nargs='+',
        help='names of the containers to create',
        metavar='NAME',
    )
    parser.set_defaults(cmd_name='mkcontainer')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        for name in args.names:
            result = self.check(self.client.create_container_result(name), f'Creating container "{name}"')
            print(result.value)
