from pathlib import Path
import re

from pytlp.globals import CPU_DIR, CPUINFO, ROOT
from pytlp.tools import read_sysf


class CapabilityDetector:
    """
    Probes the running hardware for the kernel interfaces the applicators use.

    Results are never cached; every call re-reads sysfs/procfs.
    """

    def __init__(self, root: Path | str = ROOT) -> None:
        self.root = Path(root)

    def has_scaling_driver(self, name: str) -> bool:
        return (self.root / CPU_DIR / name).is_dir()

    def cpu_flag_present(self, flag: str) -> bool:
        cpuinfo = read_sysf(self.root / CPUINFO)
        if cpuinfo is None:
            return False
        return re.search(rf"^flags\s*:.*\b{re.escape(flag)}\b", cpuinfo, re.MULTILINE) is not None

    def available_choices(self, relpath: str) -> list[str] | None:
        """Whitespace separated choices file, e.g. scaling_available_governors."""
        value = read_sysf(self.root / relpath)
        return value.split() if value is not None else None
