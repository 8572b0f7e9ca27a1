from pathlib import Path
from typing import Iterable

from pytlp.context import RunContext
from pytlp.globals import (
    CPU_DIR,
    INTEL_PSTATE,
    NMI_WATCHDOG_FILE,
    PLATFORM_PROFILE_CHOICES,
    PLATFORM_PROFILE_FILE,
)
from pytlp.modules.capabilities import CapabilityDetector
from pytlp import tools
from pytlp.types import Outcome, PolicyResult, PowerStates

GOVERNOR_NODES = f"{CPU_DIR}/cpu[0-9]*/cpufreq/scaling_governor"
AVAILABLE_GOVERNORS = f"{CPU_DIR}/cpu0/cpufreq/scaling_available_governors"
MIN_FREQ_NODES = f"{CPU_DIR}/cpu[0-9]*/cpufreq/scaling_min_freq"
MAX_FREQ_NODES = f"{CPU_DIR}/cpu[0-9]*/cpufreq/scaling_max_freq"
PHC_NODES = f"{CPU_DIR}/cpu[0-9]*/cpufreq/phc_controls"
MIN_PERF_PCT = f"{CPU_DIR}/{INTEL_PSTATE}/min_perf_pct"
MAX_PERF_PCT = f"{CPU_DIR}/{INTEL_PSTATE}/max_perf_pct"
NO_TURBO = f"{CPU_DIR}/{INTEL_PSTATE}/no_turbo"
HWP_DYN_BOOST = f"{CPU_DIR}/{INTEL_PSTATE}/hwp_dynamic_boost"
CPUFREQ_BOOST = f"{CPU_DIR}/cpufreq/boost"
SCHED_MC = f"{CPU_DIR}/sched_mc_power_savings"
SCHED_SMT = f"{CPU_DIR}/sched_smt_power_savings"


class CpuController:
    """
    Applies the CPU related settings for a power mode.

    Every setter reads its parameters from the run context, skips unset
    values, writes all matching device nodes and returns the per class
    attempt/failure counts. Write failures are counted, never raised.
    """

    def __init__(self, ctx: RunContext, detector: CapabilityDetector | None = None) -> None:
        self.ctx = ctx
        self.detector = detector if detector is not None else CapabilityDetector(ctx.root)

    def _write_nodes(self, result: PolicyResult, node_class: str, value: str, nodes: Iterable[Path]) -> None:
        count = result.count(node_class)
        for node in nodes:
            count.attempts += 1
            if not tools.write_sysf(value, node):
                count.failures += 1
        if count.attempts > 0:
            result.outcome = Outcome.APPLIED
        elif result.outcome is Outcome.NOT_CONFIGURED:
            result.outcome = Outcome.NO_DEVICE
        self.ctx.debug("%s.%s: %s; cnt/err=%r", result.knob, node_class, value, count)

    def _existing(self, relpath: str) -> list[Path]:
        path = self.ctx.path(relpath)
        return [path] if path.is_file() else []

    def set_scaling_governor(self, mode: PowerStates) -> PolicyResult:
        result = PolicyResult("cpu_scaling_governor", Outcome.NO_DEVICE)
        gov = self.ctx.mode_param("CPU_SCALING_GOVERNOR", mode)
        if not gov:
            self.ctx.debug("set_cpu_scaling_governor(%s).not_configured", mode.value)
            result.outcome = Outcome.NOT_CONFIGURED
            return result

        available = self.detector.available_choices(AVAILABLE_GOVERNORS)
        if available is not None and gov not in available:
            self.ctx.debug("set_cpu_scaling_governor(%s).invalid: gov=%s", mode.value, gov)
            result.outcome = Outcome.INVALID
            return result

        self._write_nodes(result, "governor", gov, self.ctx.nodes(GOVERNOR_NODES))
        return result

    def set_scaling_min_max_freq(self, mode: PowerStates) -> PolicyResult:
        """
        Sets scaling_min_freq and scaling_max_freq of all CPUs.

        Minimum and maximum are configured independently, either may be unset.
        """
        result = PolicyResult("cpu_scaling_min_max_freq", Outcome.NOT_CONFIGURED)
        for node_class, param, pattern in (
            ("min", "CPU_SCALING_MIN_FREQ", MIN_FREQ_NODES),
            ("max", "CPU_SCALING_MAX_FREQ", MAX_FREQ_NODES),
        ):
            freq = self.ctx.mode_param(param, mode)
            if not freq:
                self.ctx.debug("set_cpu_scaling_min_max_freq(%s).%s.not_configured", mode.value, node_class)
                continue
            if not freq.isdigit():
                self.ctx.debug("set_cpu_scaling_min_max_freq(%s).%s.invalid: freq=%s", mode.value, node_class, freq)
                result.outcome = Outcome.INVALID
                continue
            self._write_nodes(result, node_class, freq, self.ctx.nodes(pattern))
        return result

    def set_perf_pct(self, mode: PowerStates) -> PolicyResult:
        result = PolicyResult("intel_cpu_perf_pct", Outcome.NOT_CONFIGURED)
        if not self.detector.has_scaling_driver(INTEL_PSTATE):
            self.ctx.debug("set_intel_cpu_perf_pct(%s).no_intel_pstate", mode.value)
            result.outcome = Outcome.UNSUPPORTED
            return result

        for node_class, param, relpath in (
            ("min", "CPU_MIN_PERF", MIN_PERF_PCT),
            ("max", "CPU_MAX_PERF", MAX_PERF_PCT),
        ):
            pct = self.ctx.mode_param(param, mode)
            if not pct:
                self.ctx.debug("set_intel_cpu_perf_pct(%s).%s.not_configured", mode.value, node_class)
                continue
            if not (pct.isdigit() and 0 <= int(pct) <= 100):
                self.ctx.debug("set_intel_cpu_perf_pct(%s).%s.invalid: pct=%s", mode.value, node_class, pct)
                result.outcome = Outcome.INVALID
                continue
            self._write_nodes(result, node_class, pct, self._existing(relpath))
        return result

    def set_boost(self, mode: PowerStates) -> PolicyResult:
        """
        Enables or disables CPU turbo boost.

        intel_pstate exposes no_turbo, so the configured value is inverted;
        other drivers use the generic cpufreq boost file as is.
        """
        result = PolicyResult("cpu_boost", Outcome.NO_DEVICE)
        boost = self.ctx.mode_param("CPU_BOOST", mode)
        if not boost:
            self.ctx.debug("set_cpu_boost(%s).not_configured", mode.value)
            result.outcome = Outcome.NOT_CONFIGURED
            return result
        if boost not in ("0", "1"):
            self.ctx.debug("set_cpu_boost(%s).invalid: boost=%s", mode.value, boost)
            result.outcome = Outcome.INVALID
            return result

        if self.detector.has_scaling_driver(INTEL_PSTATE):
            self._write_nodes(result, "no_turbo", str(int(boost == "0")), self._existing(NO_TURBO))
        else:
            self._write_nodes(result, "boost", boost, self._existing(CPUFREQ_BOOST))
        return result

    def set_hwp_dyn_boost(self, mode: PowerStates) -> PolicyResult:
        result = PolicyResult("cpu_hwp_dyn_boost", Outcome.NO_DEVICE)
        dyn_boost = self.ctx.mode_param("CPU_HWP_DYN_BOOST", mode)
        if not dyn_boost:
            result.outcome = Outcome.NOT_CONFIGURED
            return result
        if dyn_boost not in ("0", "1"):
            self.ctx.debug("set_cpu_hwp_dyn_boost(%s).invalid: dyn_boost=%s", mode.value, dyn_boost)
            result.outcome = Outcome.INVALID
            return result

        self._write_nodes(result, "hwp_dynamic_boost", dyn_boost, self._existing(HWP_DYN_BOOST))
        return result

    def set_sched_powersave(self, mode: PowerStates) -> PolicyResult:
        result = PolicyResult("sched_powersave", Outcome.NO_DEVICE)
        value = self.ctx.mode_param("SCHED_POWERSAVE", mode)
        if not value:
            self.ctx.debug("set_sched_powersave(%s).not_configured", mode.value)
            result.outcome = Outcome.NOT_CONFIGURED
            return result
        if not value.isdigit():
            result.outcome = Outcome.INVALID
            return result

        self._write_nodes(result, "sched_mc", value, self._existing(SCHED_MC))
        self._write_nodes(result, "sched_smt", value, self._existing(SCHED_SMT))
        return result

    def set_nmi_watchdog(self) -> PolicyResult:
        result = PolicyResult("nmi_watchdog", Outcome.NO_DEVICE)
        value = self.ctx.param("NMI_WATCHDOG")
        if not value:
            self.ctx.debug("set_nmi_watchdog.not_configured")
            result.outcome = Outcome.NOT_CONFIGURED
            return result
        if value not in ("0", "1"):
            result.outcome = Outcome.INVALID
            return result

        self._write_nodes(result, "nmi_watchdog", value, self._existing(NMI_WATCHDOG_FILE))
        return result

    def set_phc_controls(self) -> PolicyResult:
        result = PolicyResult("phc_controls", Outcome.NO_DEVICE)
        value = self.ctx.param("PHC_CONTROLS")
        if not value:
            self.ctx.debug("set_phc_controls.not_configured")
            result.outcome = Outcome.NOT_CONFIGURED
            return result

        self._write_nodes(result, "phc_controls", value, self.ctx.nodes(PHC_NODES))
        return result

    def set_platform_profile(self, mode: PowerStates) -> PolicyResult:
        """
        Sets the ACPI platform profile.

        The profile is validated against platform_profile_choices when the
        firmware provides that file.
        """
        result = PolicyResult("platform_profile", Outcome.NO_DEVICE)
        profile = self.ctx.mode_param("PLATFORM_PROFILE", mode)
        if not profile:
            result.outcome = Outcome.NOT_CONFIGURED
            return result

        choices = self.detector.available_choices(PLATFORM_PROFILE_CHOICES)
        if choices is not None and profile not in choices:
            self.ctx.debug("set_platform_profile(%s).invalid: profile=%s", mode.value, profile)
            result.outcome = Outcome.INVALID
            return result

        self._write_nodes(result, "platform_profile", profile, self._existing(PLATFORM_PROFILE_FILE))
        return result
