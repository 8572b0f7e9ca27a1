from pathlib import Path

import pytest

from pytlp.config.store import ParameterStore
from pytlp.context import RunContext
from pytlp.trace import Tracer

CPUINFO = """processor\t: {cpu}
vendor_id\t: GenuineIntel
model name\t: Intel(R) Core(TM) i7-8550U CPU @ 1.80GHz
flags\t\t: fpu vme de pse tsc msr {flags}
"""


class FakeSysfs:
    """Builds a sysfs/procfs tree below a temporary root."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.cpu_dir = root / "sys/devices/system/cpu"
        self.cpu_dir.mkdir(parents=True)

    def write(self, relpath: str, value: str = "") -> Path:
        path = self.root / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(value)
        return path

    def read(self, relpath: str) -> str:
        return (self.root / relpath).read_text().strip()

    def cpuinfo(self, *flags: str, cpus: int = 2) -> None:
        self.write("proc/cpuinfo", "\n".join(CPUINFO.format(cpu=cpu, flags=" ".join(flags)) for cpu in range(cpus)))

    def cpus(self, count: int = 2) -> None:
        for cpu in range(count):
            self.write(f"sys/devices/system/cpu/cpu{cpu}/cpufreq/scaling_governor", "powersave")

    def intel_pstate(self) -> None:
        for name, value in (("status", "active"), ("no_turbo", "0"), ("min_perf_pct", "10"), ("max_perf_pct", "100")):
            self.write(f"sys/devices/system/cpu/intel_pstate/{name}", value)

    def epp_nodes(self, count: int = 2) -> list[Path]:
        return [
            self.write(f"sys/devices/system/cpu/cpu{cpu}/cpufreq/energy_performance_preference", "default")
            for cpu in range(count)
        ]

    def epb_nodes(self, count: int = 2) -> list[Path]:
        return [self.write(f"sys/devices/system/cpu/cpu{cpu}/power/energy_perf_bias", "6") for cpu in range(count)]


@pytest.fixture
def sysfs(tmp_path: Path) -> FakeSysfs:
    return FakeSysfs(tmp_path / "root")


@pytest.fixture
def make_ctx(sysfs: FakeSysfs):
    def _make_ctx(**params: str) -> RunContext:
        tracer = Tracer()
        store = ParameterStore(tracer)
        for name, value in params.items():
            store.insert_or_overwrite(name, value, "test L0001")
        return RunContext(store, tracer, sysfs.root)

    return _make_ctx


@pytest.fixture
def conf_tree(tmp_path: Path):
    """Defaults file, drop-in directory and user config paths below tmp_path."""
    etc = tmp_path / "etc"
    (etc / "tlp.d").mkdir(parents=True)
    share = tmp_path / "usr/share/tlp"
    share.mkdir(parents=True)
    return {
        "defaults_file": str(share / "defaults.conf"),
        "conf_dir": str(etc / "tlp.d"),
        "user_conf_file": str(etc / "tlp.conf"),
        "legacy_conf_file": str(etc / "default/tlp"),
    }
