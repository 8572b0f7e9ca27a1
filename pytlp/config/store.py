from dataclasses import dataclass
import re
import sys
from typing import Iterator

from pytlp.trace import Tracer
from pytlp.types import InsertResult

DEBUG_PARAM = "TLP_DEBUG"
_CFG_TOPIC = re.compile(r"\bcfg\b")


@dataclass
class Parameter:
    name: str
    value: str
    source: str

    def __str__(self) -> str:
        return f'{self.name}="{self.value}"'


class ParameterStore:
    """
    Ordered table of resolved parameters with name-indexed lookup.

    A parameter keeps the position of its first insertion; later writes
    only replace value and source.
    """

    def __init__(self, tracer: Tracer | None = None) -> None:
        self.tracer: Tracer = tracer if tracer is not None else Tracer()
        self._params: list[Parameter] = []
        self._index: dict[str, int] = {}
        self._defaults: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._params)

    def __iter__(self) -> Iterator[Parameter]:
        return iter(self._params)

    def __contains__(self, name: str) -> bool:
        return name in self._index

    def insert_or_overwrite(self, name: str, value: str, source: str) -> tuple[InsertResult, int]:
        """
        Insert a new parameter or overwrite an existing one in place.

        :param name: parameter name
        :param value: parameter value, may be empty
        :param source: provenance, file and line
        :return: whether the parameter was inserted or replaced, and its position
        """
        if name == DEBUG_PARAM and _CFG_TOPIC.search(value):
            self.tracer.enable("cfg")

        if name in self._index:
            pos = self._index[name]
            param = self._params[pos]
            param.value = value
            param.source = source
            result = InsertResult.REPLACED
        else:
            pos = len(self._params)
            self._params.append(Parameter(name, value, source))
            self._index[name] = pos
            result = InsertResult.INSERTED

        self.tracer.debug("cfg", "readconfs.%s(%s) = %s [#%d, %s]", result.value, name, value, pos, source)
        return result, pos

    def lookup(self, name: str) -> str | None:
        pos = self._index.get(name)
        return self._params[pos].value if pos is not None else None

    def get(self, name: str) -> Parameter | None:
        pos = self._index.get(name)
        return self._params[pos] if pos is not None else None

    def mark_defaults(self) -> None:
        """Remember the current values as the intrinsic defaults."""
        self._defaults = {param.name: param.value for param in self._params}

    def is_default(self, param: Parameter) -> bool:
        return param.name in self._defaults and self._defaults[param.name] == param.value

    def serialize(self, outfile: str | None = None, cdiff: bool = False) -> bool:
        """
        Write the merged configuration.

        To a file: ``NAME="value"`` per line. To stdout: ``source: NAME="value"``.
        With cdiff, parameters still carrying their default value are left out.

        :param outfile: target file, stdout if None
        :param cdiff: only output parameters differing from the defaults
        :return: False if the target file could not be written
        """
        params = [param for param in self._params if not (cdiff and self.is_default(param))]

        if outfile is None:
            for param in params:
                print(f"{param.source}: {param}", file=sys.stdout)
            return True

        try:
            with open(outfile, "w") as f:
                for param in params:
                    f.write(f"{param}\n")
        except OSError as e:
            self.tracer.debug("cfg", "readconfs.serialize(%s).failed: %s", outfile, e)
            return False
        return True
