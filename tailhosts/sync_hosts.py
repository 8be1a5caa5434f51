import argparse
import configparser
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from injector import Injector, Module, inject, provider, singleton

from tailhosts.errors import BackupFailed, ConfigurationError, HostsSyncError, NoPeersFound, ToolUnhealthy
from tailhosts.hosts_file import merge_peers, read_hosts
from tailhosts.materialize import (DEFAULT_LOOPBACK, create_backup, replace_target, resolve_filepath,
                                   write_hosts)
from tailhosts.tailscale import PeerProvider, TailscalePeers

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = '/etc/hosts'
DEFAULT_TEMP = '/tmp/hosts.temp'


#####################################################################################
#                              Configuration                                        #
#####################################################################################
class Configuration:
    def __init__(self, source=DEFAULT_SOURCE, temp=DEFAULT_TEMP, backup=None, target=None,
                 tailscale_bin: str = 'tailscale', timeout: Optional[float] = None,
                 allow_no_peers: bool = False, loopback: Optional[Dict[str, List[str]]] = None):
        self.source = Path(source)
        self.temp = temp
        self.backup = Path(backup) if backup else None
        self.target = target if target else self.source
        self.tailscale_bin = tailscale_bin
        self.timeout = timeout
        self.allow_no_peers = allow_no_peers
        self.loopback = dict(DEFAULT_LOOPBACK) if loopback is None else loopback

    @classmethod
    def load(cls, args: argparse.Namespace) -> 'Configuration':
        """Merge command line flags over the optional .conf file."""
        config = configparser.ConfigParser()
        if args.config is not None:
            try:
                found = config.read(args.config)
            except configparser.Error as e:
                raise ConfigurationError(args.config, e) from e
            if not found:
                raise ConfigurationError(args.config, 'No such file or directory')

        def pick(flag, section, key, fallback=None):
            if flag is not None:
                return flag
            return config.get(section, key, fallback=fallback) or fallback

        timeout = pick(args.timeout, 'tailscale', 'timeout')
        try:
            timeout = float(timeout) if timeout is not None else None
            allow_no_peers = args.allow_no_peers or config.getboolean('tailscale', 'allow_no_peers', fallback=False)
        except ValueError as e:
            raise ConfigurationError(args.config, e) from e

        loopback = {}
        for ip, key in (('127.0.0.1', 'ipv4'), ('::1', 'ipv6')):
            names = config.get('loopback', key, fallback='').split()
            loopback[ip] = names or list(DEFAULT_LOOPBACK[ip])

        return cls(source=pick(args.source, 'hosts', 'source', DEFAULT_SOURCE),
                   temp=pick(args.temp, 'hosts', 'temp', DEFAULT_TEMP),
                   backup=pick(args.backup, 'hosts', 'backup'),
                   target=pick(args.target, 'hosts', 'target'),
                   tailscale_bin=pick(args.tailscale_bin, 'tailscale', 'binary', 'tailscale'),
                   timeout=timeout,
                   allow_no_peers=allow_no_peers,
                   loopback=loopback)


#####################################################################################
#                              Action                                               #
#####################################################################################
class SyncModule(Module):
    @singleton
    @provider
    def provide_peer_provider(self, configuration: Configuration) -> PeerProvider:
        return TailscalePeers(configuration.tailscale_bin, configuration.timeout)


class HostsSync:
    @inject
    def __init__(self, configuration: Configuration, peers: PeerProvider):
        self.configuration = configuration
        self.peers = peers

    def fetch_peers(self):
        if not self.peers.check_available():
            raise ToolUnhealthy(f'{self.configuration.tailscale_bin} --version')
        try:
            return self.peers.fetch_peers()
        except NoPeersFound as e:
            if not self.configuration.allow_no_peers:
                raise
            logger.warning("%s, keeping the current entries only", e.message)
            return []

    def run(self) -> Path:
        conf = self.configuration
        table = read_hosts(conf.source)

        # if a file name is included in --temp, use it, else take it from --source
        temp_filepath = resolve_filepath(conf.temp, conf.source)

        added = merge_peers(table, self.fetch_peers())
        logger.info("merged %d new peer names", added)

        write_hosts(table, temp_filepath, conf.loopback)

        try:
            create_backup(conf.source, conf.backup)
        except BackupFailed as e:
            logger.error("backup failed, installing anyway: %s", e.message)

        target_filepath = resolve_filepath(conf.target, conf.source)
        replace_target(target_filepath, temp_filepath)
        return target_filepath


#####################################################################################
#                              Main                                                 #
#####################################################################################
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='tailhosts',
                                     description='Merge tailscale peers into an /etc/hosts style file.')
    parser.add_argument('--config', help='.conf file with [hosts], [tailscale] and [loopback] sections')
    parser.add_argument('-s', '--source', help=f'alias file to read (default: {DEFAULT_SOURCE})')
    parser.add_argument('-p', '--temp', help=f'working file or directory (default: {DEFAULT_TEMP})')
    parser.add_argument('-b', '--backup', help='backup file (default: source with .old extension)')
    parser.add_argument('-t', '--target', help='install file or directory (default: same as source)')
    parser.add_argument('--tailscale-bin', help='tailscale executable (default: tailscale)')
    parser.add_argument('--timeout', type=float, help='seconds to wait for each tailscale call')
    parser.add_argument('--allow-no-peers', action='store_true', default=None,
                        help='warn instead of failing when tailscale reports no peers')
    parser.add_argument('--log-level', default='WARNING', help='logging level (default: WARNING)')
    return parser


def setup_logging(log_level: str):
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ConfigurationError('--log-level', f'Invalid log level: {log_level}')
    logging.basicConfig(level=numeric_level,
                        format="%(asctime)s - %(name)s [%(levelname)s] - %(message)s",
                        datefmt="%Y-%m-%d %H:%M:%S",
                        stream=sys.stderr)


def configure_for(configuration: Configuration):
    def configure_for_bind(binder):
        binder.bind(Configuration, to=configuration, scope=singleton)
    return configure_for_bind


def main(argv=None, modules=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        setup_logging(args.log_level)
        configuration = Configuration.load(args)
        injector = Injector([configure_for(configuration), SyncModule()] + list(modules or []))
        handler = injector.get(HostsSync)
        handler.run()
    except HostsSyncError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    return 0


def run_cli():
    sys.exit(main())


if __name__ == "__main__":
    run_cli()
