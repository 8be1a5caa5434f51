import logging
import os
import shutil
from pathlib import Path
from typing import Dict, List, Optional

from tailhosts.errors import BackupFailed, InstallFailed, TempWriteError, TempWriteNotFound
from tailhosts.hosts_file import AliasTable

logger = logging.getLogger(__name__)

# written first, in this order, whether or not the table has them
DEFAULT_LOOPBACK: Dict[str, List[str]] = {
    '127.0.0.1': ['localhost'],
    '::1': ['localhost'],
}


def resolve_filepath(path, source_filepath) -> Path:
    """Return ``path`` itself, or ``path/<source name>`` when it names a directory."""
    raw = os.fspath(path)
    path = Path(raw)
    if raw.endswith(('/', os.sep)) or path.name in ('', '..') or path.is_dir():
        return path / Path(source_filepath).name
    return path


def default_backup_path(source_filepath) -> Path:
    return Path(source_filepath).with_suffix('.old')


def render_lines(table: AliasTable, loopback: Optional[Dict[str, List[str]]] = None) -> List[str]:
    loopback = DEFAULT_LOOPBACK if loopback is None else loopback
    remaining = dict(table)
    max_ip_len = max((len(ip) for ip in list(remaining) + list(loopback)), default=0)

    lines = []
    for ip, default_names in loopback.items():
        hostnames = remaining.pop(ip, None) or list(default_names)
        lines.append(f"{ip:<{max_ip_len}} {' '.join(hostnames)}\n")
    for ip, hostnames in remaining.items():
        lines.append(f"{ip:<{max_ip_len}} {' '.join(hostnames)}\n")
    return lines


def write_hosts(table: AliasTable, temp_filepath, loopback: Optional[Dict[str, List[str]]] = None):
    if not table:
        logger.warning("host table is empty, only default addresses will be written")
    lines = render_lines(table, loopback)
    try:
        with open(temp_filepath, 'w', encoding='utf-8') as output:
            output.writelines(lines)
    except FileNotFoundError as e:
        raise TempWriteNotFound(temp_filepath, e) from e
    except OSError as e:
        raise TempWriteError(temp_filepath, e.strerror or e) from e
    logger.info("wrote %d lines to %s", len(lines), temp_filepath)


def create_backup(source_filepath, backup_filepath=None) -> Path:
    try:
        if backup_filepath is None:
            backup_filepath = default_backup_path(source_filepath)
        backup_filepath = Path(backup_filepath)
        shutil.copy2(source_filepath, backup_filepath)
    except ValueError as e:
        raise BackupFailed(source_filepath, e) from e
    except OSError as e:
        raise BackupFailed(source_filepath, e.strerror or e) from e
    logger.info("backed up %s to %s", source_filepath, backup_filepath)
    return backup_filepath


def replace_target(target_filepath, temp_filepath):
    logger.info("target: %s, source: %s", target_filepath, temp_filepath)
    try:
        shutil.copy2(temp_filepath, target_filepath)
    except OSError as e:
        raise InstallFailed(target_filepath, e.strerror or e) from e
