from dataclasses import dataclass
from pathlib import Path
import platform
import re

import distro
import psutil

from pytlp.globals import CPU_DIR, CPUINFO, INTEL_PSTATE, NMI_WATCHDOG_FILE, PLATFORM_PROFILE_FILE
from pytlp.tools import read_sysf


@dataclass
class CoreReport:
    id: int
    governor: str | None
    min_freq: str | None
    max_freq: str | None
    epp: str | None
    epb: str | None


@dataclass
class ProcessorReport:
    distro_name: str
    kernel_version: str
    processor_model: str
    cpu_driver: str | None
    cores: list[CoreReport]
    intel_pstate: dict[str, str | None]
    boost: str | None
    nmi_watchdog: str | None
    platform_profile: str | None


class SystemInfo:
    """
    Provides the power source state and the current processor settings.
    """

    def __init__(self, root: Path | str = "/") -> None:
        self.root = Path(root)

    @staticmethod
    def is_ac_plugged() -> bool | None:
        """
        :return: True on AC, False on battery, None if there is no battery
        """
        battery = psutil.sensors_battery()
        if battery is None:
            return None
        return bool(battery.power_plugged)

    def processor_model(self) -> str:
        cpuinfo = read_sysf(self.root / CPUINFO) or ""
        match = re.search(r"^model name\s*:\s*(.*)$", cpuinfo, re.MULTILINE)
        return match.group(1).strip() if match else "unknown"

    def core_reports(self) -> list[CoreReport]:
        def cpu_id(path: Path) -> int: return int(path.name[3:])

        cpu_dirs = sorted((self.root / CPU_DIR).glob("cpu[0-9]*"), key=cpu_id)
        return [
            CoreReport(
                id=cpu_id(cpu),
                governor=read_sysf(cpu / "cpufreq/scaling_governor"),
                min_freq=read_sysf(cpu / "cpufreq/scaling_min_freq"),
                max_freq=read_sysf(cpu / "cpufreq/scaling_max_freq"),
                epp=read_sysf(cpu / "cpufreq/energy_performance_preference"),
                epb=read_sysf(cpu / "power/energy_perf_bias"),
            )
            for cpu in cpu_dirs
        ]

    def generate_processor_report(self) -> ProcessorReport:
        cpu_dir = self.root / CPU_DIR
        pstate_dir = cpu_dir / INTEL_PSTATE
        return ProcessorReport(
            distro_name=distro.name(pretty=True) or "unknown",
            kernel_version=platform.release(),
            processor_model=self.processor_model(),
            cpu_driver=read_sysf(cpu_dir / "cpu0/cpufreq/scaling_driver"),
            cores=self.core_reports(),
            intel_pstate={
                name: read_sysf(pstate_dir / name)
                for name in ("status", "min_perf_pct", "max_perf_pct", "no_turbo", "hwp_dynamic_boost")
            } if pstate_dir.is_dir() else {},
            boost=read_sysf(cpu_dir / "cpufreq/boost"),
            nmi_watchdog=read_sysf(self.root / NMI_WATCHDOG_FILE),
            platform_profile=read_sysf(self.root / PLATFORM_PROFILE_FILE),
        )
