from argparse import Namespace

from solidpod.cli.commands import BaseCommand


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='read',
        aliases=['cat'],
        description='Print the entries of a text resource, one per line'
    )
    parser.add_argument('container', help='name of the container holding the resource')
    parser.add_argument('file', help='name of the resource within the container')
    parser.set_defaults(cmd_name='read')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        result = self.check(
            self.client.read_data_result(args.container, args.file),
            f'Reading {args.container}/{args.file}',
        )
        for entry in result.value:
            print(entry)
