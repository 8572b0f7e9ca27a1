import os

from pytlp.config.parser import parse_config_file
from pytlp.config.store import ParameterStore
from pytlp.globals import (
    CONF_DIR,
    DEFAULTS_FILE,
    EXIT_DEFAULTS_MISSING,
    EXIT_USER_CONFIG_MISSING,
    LEGACY_CONF_FILE,
    USER_CONF_FILE,
)
from pytlp.trace import Tracer


class ConfigError(Exception):
    exit_code: int = 1


class DefaultsMissingError(ConfigError):
    exit_code = EXIT_DEFAULTS_MISSING

    def __init__(self, path: str) -> None:
        super().__init__(f"Config file {path} is missing")
        self.path = path


class UserConfigMissingError(ConfigError):
    exit_code = EXIT_USER_CONFIG_MISSING

    def __init__(self, *paths: str) -> None:
        super().__init__(f"Config file {' or '.join(paths)} is missing")
        self.paths = paths


class ConfigResolver:
    """
    Merges the layered configuration into one parameter store.

    Precedence, lowest first:
    1. intrinsic defaults file (mandatory)
    2. drop-in files ``*.conf`` of the customization directory, in filename order
    3. user config file, or the legacy path if it is missing (one of them is mandatory)
    """

    def __init__(
        self,
        defaults_file: str = DEFAULTS_FILE,
        conf_dir: str = CONF_DIR,
        user_conf_file: str = USER_CONF_FILE,
        legacy_conf_file: str = LEGACY_CONF_FILE,
        tracer: Tracer | None = None,
    ) -> None:
        self.defaults_file = defaults_file
        self.conf_dir = conf_dir
        self.user_conf_file = user_conf_file
        self.legacy_conf_file = legacy_conf_file
        self.tracer: Tracer = tracer if tracer is not None else Tracer()

    def dropin_files(self) -> list[str]:
        try:
            names = sorted(os.listdir(self.conf_dir))
        except OSError:
            return []
        return [
            os.path.join(self.conf_dir, name)
            for name in names
            if name.endswith(".conf") and os.path.isfile(os.path.join(self.conf_dir, name))
        ]

    def read(self) -> ParameterStore:
        """
        Read all layers.

        :raises DefaultsMissingError: the defaults file is missing
        :raises UserConfigMissingError: neither user config path exists
        :return: the merged parameter store
        """
        store = ParameterStore(self.tracer)

        if not parse_config_file(self.defaults_file, store, defaults_file=True):
            raise DefaultsMissingError(self.defaults_file)
        store.mark_defaults()

        for path in self.dropin_files():
            parse_config_file(path, store)

        if not parse_config_file(self.user_conf_file, store):
            self.tracer.debug("cfg", "readconfs.fallback(%s)", self.legacy_conf_file)
            if not parse_config_file(self.legacy_conf_file, store):
                raise UserConfigMissingError(self.user_conf_file, self.legacy_conf_file)

        return store

    def resolve(self, outfile: str | None = None, cdiff: bool = False) -> tuple[ParameterStore, bool]:
        """
        Read all layers and serialize the result.

        :param outfile: merged config artifact, stdout with provenance if None
        :param cdiff: only output parameters differing from the defaults
        :return: the merged parameter store and whether serializing succeeded
        """
        store = self.read()
        return store, store.serialize(outfile, cdiff=cdiff)
