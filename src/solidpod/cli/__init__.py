#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import logging
import logging.config
import os
import sys
from argparse import ArgumentParser, FileType
from importlib import import_module
from pkgutil import iter_modules

import yaml

from solidpod.cli import commands
from solidpod.context import PodContext
from solidpod.utils import DEFAULT_LOGGING_OPTIONS, datetimestamp, envsubst

logger = logging.getLogger(__name__)


def load_commands(subparsers):
    # load all defined subcommands from the solidpod.cli.commands package,
    # using introspection
    command_modules = {}
    for finder, name, ispkg in iter_modules(commands.__path__):
        module = import_module(commands.__name__ + '.' + name)
        if hasattr(module, 'configure_cli'):
            module.configure_cli(subparsers)
            command_modules[name] = module
    return command_modules


def build_parser() -> tuple[ArgumentParser, dict]:
    parser = ArgumentParser(
        prog='solidpod',
        description='Manage containers and text resources in a Solid/LDP pod.'
    )
    parser.set_defaults(cmd_name=None)

    parser.add_argument(
        '-c', '--config',
        help='Path to configuration file.',
        action='store',
        dest='config_file',
        type=FileType('r'),
        required=True,
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        '-v', '--verbose',
        help='increase the verbosity of the status output',
        action='store_true'
    )
    verbosity.add_argument(
        '-q', '--quiet',
        help='decrease the verbosity of the status output',
        action='store_true'
    )

    subparsers = parser.add_subparsers(title='commands')
    command_modules = load_commands(subparsers)
    return parser, command_modules


def configure_logging(pod_config: dict, cmd_name: str, verbose: bool = False, quiet: bool = False):
    if 'LOGGING_CONFIG' in pod_config:
        with open(pod_config['LOGGING_CONFIG'], 'r') as logging_config_file:
            logging_options = yaml.safe_load(logging_config_file)
    else:
        # copy the nested handler configs so repeated runs start from the defaults
        logging_options = {
            **DEFAULT_LOGGING_OPTIONS,
            'handlers': {k: dict(v) for k, v in DEFAULT_LOGGING_OPTIONS['handlers'].items()},
        }

        log_dirname = pod_config.get('LOG_DIR', 'logs')
        if not os.path.isdir(log_dirname):
            os.makedirs(log_dirname)
        log_filename = f'solidpod.{cmd_name}.{datetimestamp()}.log'
        logging_options['handlers']['file']['filename'] = os.path.join(log_dirname, log_filename)

    # manipulate console verbosity
    if 'console' in logging_options.get('handlers', {}):
        if verbose:
            logging_options['handlers']['console']['level'] = 'DEBUG'
        elif quiet:
            logging_options['handlers']['console']['level'] = 'WARNING'

    logging.config.dictConfig(logging_options)


def main(argv=None):
    """Parse args and handle options."""
    parser, command_modules = build_parser()
    args = parser.parse_args(argv)

    # if no subcommand was selected, display the help
    if args.cmd_name is None:
        parser.print_help()
        sys.exit(0)

    config = envsubst(yaml.safe_load(args.config_file)) or {}
    context = PodContext(config=config, args=args)

    configure_logging(context.pod_config, args.cmd_name, verbose=args.verbose, quiet=args.quiet)

    command_module = command_modules[args.cmd_name]

    # dispatch to the selected subcommand
    try:
        context.client.ua_string = f'solidpod/{context.version} ({args.cmd_name})'
        logger.debug(f'Client User-Agent set to "{context.client.ua_string}"')
        logger.info(f'Loaded pod configuration from {args.config_file.name}')

        command = command_module.Command(context=context)
        command(args)
    except (RuntimeError, ValueError) as e:
        # something failed, exit with non-zero status
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        # aborted due to Ctrl+C
        sys.exit(2)


if __name__ == "__main__":
    main()
