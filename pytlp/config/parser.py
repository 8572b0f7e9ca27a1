import os
import re

from pytlp.config.store import ParameterStore

# NAME=value or NAME="quoted value", trailing whitespace only
LINE_PATTERN = re.compile(
    r'^(?P<name>[A-Z_]+[0-9]*)=(?:(?P<bare>[-0-9a-zA-Z_:.]*)|"(?P<quoted>[-0-9a-zA-Z _:.]*)")\s*$'
)


def parse_line(line: str) -> tuple[str, str] | None:
    match = LINE_PATTERN.match(line)
    if match is None:
        return None
    value = match.group("bare")
    if value is None:
        value = match.group("quoted")
    return match.group("name"), value


def parse_config_file(path: str, store: ParameterStore, defaults_file: bool = False) -> bool:
    """
    Feed every setting of a config file into the parameter store.

    Lines that are not exactly ``NAME=value`` or ``NAME="value"`` are skipped.

    :param path: config file
    :param store: target parameter store
    :param defaults_file: tag sources with the basename instead of the full path
    :return: False if the file is missing or unreadable
    """
    tag = os.path.basename(path) if defaults_file else path
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            store.tracer.debug("cfg", "readconfs.parse(%s)", path)
            for lineno, line in enumerate(f, start=1):
                setting = parse_line(line.rstrip("\n"))
                if setting is not None:
                    store.insert_or_overwrite(*setting, source=f"{tag} L{lineno:04d}")
    except OSError:
        return False
    return True
