#!/usr/bin/env python3

# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

import sys
import argparse
import json
import asyncio
import logging

from yeelight_discovery.internal_types import *

from yeelight_discovery import (
    __version__ as pkg_version,
    YeelightDiscovery,
    YeelightDevice,
    DiscoveryConfig,
    NoDeviceFound,
  )
from yeelight_discovery.util import get_interface_ipv4_address, get_interface_names

class CmdExitError(RuntimeError):
    exit_code: int

    def __init__(self, exit_code: int, msg: Optional[str]=None):
        if msg is None:
            msg = f"Command exited with return code {exit_code}"
        super().__init__(msg)
        self.exit_code = exit_code

class ArgparseExitError(CmdExitError):
    pass

class NoExitArgumentParser(argparse.ArgumentParser):
    def exit(self, status=0, message=None):
        if message:
            self._print_message(message, sys.stderr)
        raise ArgparseExitError(status, message)

NO_DEVICE_FOUND_EXIT_CODE = 2

class CommandHandler:
    _argv: Optional[Sequence[str]]
    _parser: argparse.ArgumentParser
    _args: argparse.Namespace
    _provide_traceback: bool = True

    def __init__(self, argv: Optional[Sequence[str]]=None):
        self._argv = argv

    async def cmd_bare(self) -> int:
        print("A command is required", file=sys.stderr)
        return 1

    def _print_json(self, data: Jsonable) -> None:
        print(json.dumps(data, indent=2, sort_keys=True))
        sys.stdout.flush()

    def _get_config(self) -> DiscoveryConfig:
        """Builds the discovery config from an optional --config file, overridden by command-line options."""
        config_file: Optional[str] = self._args.config_file
        config = DiscoveryConfig() if config_file is None else DiscoveryConfig.load(config_file)
        overrides: Dict[str, Any] = {}
        bind_host: Optional[str] = self._args.bind_host
        interface: Optional[str] = self._args.interface
        if interface is not None:
            bind_host = get_interface_ipv4_address(interface)
            if bind_host is None:
                raise CmdExitError(1, f"No IPv4 address found for interface {interface!r}; available interfaces: {', '.join(get_interface_names())}")
        if bind_host is not None:
            overrides['bind_host'] = bind_host
        if self._args.port is not None:
            overrides['bind_port'] = self._args.port
        if self._args.multicast_host is not None:
            overrides['multicast_host'] = self._args.multicast_host
        if self._args.limit is not None:
            overrides['reply_limit'] = self._args.limit
        if self._args.timeout is not None:
            overrides['timeout_ms'] = self._args.timeout
        if self._args.debug is not None:
            overrides['debug'] = self._args.debug
        return config.replace(**overrides)

    async def cmd_discover(self) -> int:
        config = self._get_config()
        watch: bool = self._args.watch

        def on_device_added(device: YeelightDevice) -> None:
            self._print_json({ "event": "device_added", "device": device.to_jsonable() })

        logging.debug(f"Discovering with config {config}")
        async with YeelightDiscovery(config) as discovery:
            if watch:
                discovery.add_device_added_handler(on_device_added)
            try:
                devices = await discovery.start()
            except NoDeviceFound as e:
                raise CmdExitError(NO_DEVICE_FOUND_EXIT_CODE, str(e)) from e
        self._print_json([ device.to_jsonable() for device in devices ])
        return 0

    async def cmd_version(self) -> int:
        print(pkg_version)
        return 0

    async def arun(self) -> int:
        """Run the yeelight-discovery command-line tool with provided arguments

        Args:
            argv (Optional[Sequence[str]], optional):
                A list of commandline arguments (NOT including the program as argv[0]!),
                or None to use sys.argv[1:]. Defaults to None.

        Returns:
            int: The exit code that would be returned if this were run as a standalone command.
        """
        parser = NoExitArgumentParser(prog="yeelight-discovery", description="Discover Yeelight devices on the local network.")


        # ======================= Main command

        self._parser = parser
        parser.add_argument('--traceback', "--tb", action='store_true', default=False,
                            help='Display detailed exception information')
        parser.add_argument('--log-level', dest='log_level', default='warning',
                            choices=['debug', 'info', 'warning', 'error', 'critical'],
                            help='''The logging level to use. Default: warning''')
        parser.set_defaults(func=self.cmd_bare)

        subparsers = parser.add_subparsers(
                            title='Commands',
                            description='Valid commands',
                            help='Additional help available with "<command-name> -h"')


        # ======================= discover

        parser_discover = subparsers.add_parser('discover', description="Search for Yeelight devices")
        bind_group = parser_discover.add_mutually_exclusive_group()
        bind_group.add_argument('-b', '--bind', dest="bind_host", default=None,
                            help='''The local IP address to bind to. Default: all interfaces''')
        bind_group.add_argument('-i', '--interface', dest="interface", default=None,
                            help='''The name of the network interface whose IPv4 address should be bound to.''')
        parser_discover.add_argument('-p', '--port', type=int, default=None,
                            help='''The UDP port to bind to and send the search request to. Default: 1982''')
        parser_discover.add_argument('--multicast-host', dest='multicast_host', default=None,
                            help='''The address to send the search request to. Default: 239.255.255.250''')
        parser_discover.add_argument('-n', '--limit', type=int, default=None,
                            help='''Stop as soon as this many distinct devices have replied. Default: 1''')
        parser_discover.add_argument('-t', '--timeout', type=int, default=None,
                            help='''The time to wait for replies, in milliseconds. 0 waits forever. Default: 10000''')
        parser_discover.add_argument('--debug', dest='debug', action='store_const', const=True, default=None,
                            help='''Log every received payload at INFO level (the default).''')
        parser_discover.add_argument('--no-debug', dest='debug', action='store_const', const=False,
                            help='''Do not log received payloads at INFO level.''')
        parser_discover.add_argument('-c', '--config', dest='config_file', default=None,
                            help='''A JSON file containing discovery settings. Command-line options override it.''')
        parser_discover.add_argument('-w', '--watch', action='store_true', default=False,
                            help='''Print each device as it is discovered, in addition to the final list.''')
        parser_discover.set_defaults(func=self.cmd_discover)

        # ======================= version

        parser_version = subparsers.add_parser('version',
                                description='''Display version information.''')
        parser_version.set_defaults(func=self.cmd_version)

        # =========================================================

        try:
            args = parser.parse_args(self._argv)
        except ArgparseExitError as ex:
            return ex.exit_code
        traceback: bool = args.traceback
        self._provide_traceback = traceback

        try:
            logging.basicConfig(
                level=logging.getLevelName(args.log_level.upper()),
            )
            self._args = args
            func: Callable[[], Awaitable[int]] = args.func
            logging.debug(f"Running command {func.__name__}, tb = {traceback}")
            rc = await func()
            logging.debug(f"Command {func.__name__} returned {rc}")
        except Exception as ex:
            if isinstance(ex, CmdExitError):
                rc = ex.exit_code
            else:
                rc = 1
            if rc != 0:
                if traceback:
                    raise
            print(f"yeelight-discovery: error: {ex}", file=sys.stderr)
        except BaseException as ex:
            print(f"yeelight-discovery: Unhandled exception: {ex}", file=sys.stderr)
            raise

        return rc

    def run(self) -> int:
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            rc = loop.run_until_complete(self.arun())
        finally:
            loop.close()
        return rc

def run(argv: Optional[Sequence[str]]=None) -> int:
    try:
        rc = CommandHandler(argv).run()
    except CmdExitError as ex:
        rc = ex.exit_code
    return rc

async def arun(argv: Optional[Sequence[str]]=None) -> int:
    try:
        rc = await CommandHandler(argv).arun()
    except CmdExitError as ex:
        rc = ex.exit_code
    return rc

# allow running with "python3 -m", or as a standalone script
if __name__ == "__main__":
    sys.exit(run())
