import pytest

from tailhosts.errors import NoPeersFound, ToolNotFound
from tailhosts.tailscale import PeerProvider, PeerRecord


class FakePeers(PeerProvider):
    """Stands in for the tailscale binary."""

    def __init__(self, peers=(), available=True, missing=False):
        self.peers = [PeerRecord(ip, name) for ip, name in peers]
        self.available = available
        self.missing = missing
        self.calls = []

    def check_available(self) -> bool:
        self.calls.append('check_available')
        if self.missing:
            raise ToolNotFound('tailscale --version', 'No such file or directory')
        return self.available

    def fetch_peers(self):
        self.calls.append('fetch_peers')
        if not self.peers:
            raise NoPeersFound('tailscale status')
        return list(self.peers)


@pytest.fixture
def write_source(tmp_path):
    def _write(text, name='hosts'):
        path = tmp_path / name
        path.write_text(text)
        return path
    return _write
