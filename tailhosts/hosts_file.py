"""Reading an /etc/hosts style file into an address -> names table, and folding
tailscale peers into it.

The table is a plain dict keyed by address. Each value is a list of names with
no duplicates, kept in the order the names were first seen.
"""
import logging
from typing import Dict, Iterable, List, Tuple, Union

from tailhosts.errors import SourceNotFound, SourceOpenError

logger = logging.getLogger(__name__)

AliasTable = Dict[str, List[str]]


def extract_hosts(value: str) -> str:
    # 忽略空行和注释行
    line = value.strip()
    if not line or line.startswith('#'):
        return ''
    return line


def add_name(table: AliasTable, ip: str, name: str) -> bool:
    names = table.setdefault(ip, [])
    if name in names:
        return False
    names.append(name)
    return True


def add_hosts_to_table(line: str, table: AliasTable):
    parts = extract_hosts(line).split()
    if len(parts) < 2:
        # an address with no names has nothing to contribute
        return
    ip = parts[0]
    for name in parts[1:]:
        add_name(table, ip, name)


def parse_hosts(lines: Iterable[Union[str, bytes]]) -> AliasTable:
    table: AliasTable = {}
    for raw in lines:
        if isinstance(raw, bytes):
            try:
                raw = raw.decode('utf-8')
            except UnicodeDecodeError:
                continue
        add_hosts_to_table(raw, table)
    return table


def read_hosts(source_filepath) -> AliasTable:
    """Parse the alias file at ``source_filepath``.

    Lines are read as bytes and decoded one at a time so that a single
    undecodable line is skipped instead of failing the whole file.
    """
    try:
        with open(source_filepath, 'rb') as file:
            table = parse_hosts(file)
    except FileNotFoundError as e:
        raise SourceNotFound(source_filepath, e) from e
    except OSError as e:
        raise SourceOpenError(source_filepath, e.strerror or e) from e
    logger.info("read %d addresses from %s", len(table), source_filepath)
    return table


def merge_peers(table: AliasTable, peers: Iterable[Tuple[str, str]]) -> int:
    """Append each peer name under its address unless already present.

    Existing entries are never removed. Returns the number of names added.
    """
    added = 0
    for ip, hostname in peers:
        # prevent duplicates in the name list of a particular ip
        if add_name(table, ip, hostname):
            added += 1
    return added
