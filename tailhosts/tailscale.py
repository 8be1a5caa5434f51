import logging
import subprocess
from typing import List, NamedTuple, Optional

from tailhosts.errors import NoPeersFound, StatusCommandFailed, ToolNotFound, ToolUnhealthy

logger = logging.getLogger(__name__)


class PeerRecord(NamedTuple):
    ip: str
    hostname: str


def parse_status(output: str) -> List[PeerRecord]:
    """Pick ``(ip, hostname)`` out of each line of ``tailscale status``.

    Only the first two columns are used. Lines with fewer are skipped.
    """
    result = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) >= 2:
            result.append(PeerRecord(parts[0], parts[1]))
    return result


#####################################################################################
#                              Peer provider                                        #
#####################################################################################
class PeerProvider:
    def check_available(self) -> bool:
        return True

    def fetch_peers(self) -> List[PeerRecord]:
        return []


class TailscalePeers(PeerProvider):
    def __init__(self, binary: str = 'tailscale', timeout: Optional[float] = None):
        self.binary = binary
        self.timeout = timeout

    def _run(self, arg: str) -> subprocess.CompletedProcess:
        return subprocess.run([self.binary, arg], capture_output=True, timeout=self.timeout)

    def check_available(self) -> bool:
        command = f'{self.binary} --version'
        try:
            output = self._run('--version')
        except FileNotFoundError as e:
            raise ToolNotFound(command, e) from e
        except subprocess.TimeoutExpired as e:
            raise ToolUnhealthy(command, f'timed out after {e.timeout} seconds') from e
        except OSError as e:
            raise ToolUnhealthy(command, e.strerror or e) from e
        if output.returncode != 0:
            raise ToolUnhealthy(command)
        logger.debug("%s: %s", command, output.stdout.decode('utf-8', errors='replace').strip())
        return True

    def fetch_peers(self) -> List[PeerRecord]:
        command = f'{self.binary} status'
        try:
            output = self._run('status')
        except subprocess.TimeoutExpired as e:
            raise StatusCommandFailed(command, f'timed out after {e.timeout} seconds') from e
        except OSError as e:
            raise StatusCommandFailed(command, e.strerror or e) from e
        if output.returncode != 0:
            raise StatusCommandFailed(command)

        peers = parse_status(output.stdout.decode('utf-8', errors='replace'))
        if not peers:
            raise NoPeersFound(command)
        logger.info("%s reported %d peers", command, len(peers))
        return peers
