from subprocess import run, DEVNULL

from pytlp.context import RunContext
from pytlp.globals import CPU_DIR, EPB_HELPER, EPB_HELPER_MODULE, INTEL_PSTATE
from pytlp.modules.capabilities import CapabilityDetector
from pytlp.modules.vocabulary import InvalidPolicyValue, to_canonical, to_epb_code, to_epp
from pytlp import tools
from pytlp.types import HelperStatus, Outcome, PolicyResult, PowerStates

# modern name first, then the EPB-era and HWP-only names
POLICY_PARAMS = ("CPU_ENERGY_PERF_POLICY", "ENERGY_PERF_POLICY", "CPU_HWP")
FORCE_EPB_PARAM = "X_FORCE_EPB"

EPP_NODES = f"{CPU_DIR}/cpu[0-9]*/cpufreq/energy_performance_preference"
EPB_NODES = f"{CPU_DIR}/cpu[0-9]*/power/energy_perf_bias"

HWP_FLAG = "hwp"
EPB_FLAG = "epb"

KNOB = "cpu_perf_policy"


class PerfPolicyApplicator:
    """
    Applies the CPU energy/performance policy for a power mode.

    Interfaces are tried in a fixed order:
    1. HWP energy performance preference (intel_pstate with the hwp cpu flag);
       terminal when at least one device node exists, unless EPB is forced
    2. energy performance bias (epb cpu flag), native sysfs attribute first,
       then the x86_energy_perf_policy helper
    """

    def __init__(self, ctx: RunContext, detector: CapabilityDetector | None = None) -> None:
        self.ctx = ctx
        self.detector = detector if detector is not None else CapabilityDetector(ctx.root)

    def configured_value(self, mode: PowerStates) -> str:
        """
        First non-empty policy name set by the user configuration, else the
        first non-empty one overall (the shipped defaults only carry the
        modern name).
        """
        store = self.ctx.store
        params = [store.get(f"{name}_ON_{mode.value}") for name in POLICY_PARAMS]
        params = [param for param in params if param is not None and param.value]

        for param in params:
            if not store.is_default(param):
                return param.value
        return params[0].value if params else ""

    def apply(self, mode: PowerStates, force_epb: bool | None = None) -> PolicyResult:
        """
        :param mode: active power mode
        :param force_epb: also apply EPB after EPP, defaults to the X_FORCE_EPB parameter
        :return: outcome with EPP/EPB write aggregates
        """
        if force_epb is None:
            force_epb = self.ctx.param(FORCE_EPB_PARAM) == "1"

        perf = self.configured_value(mode)
        if not perf:
            self.ctx.debug("set_cpu_perf_policy(%s).not_configured", mode.value)
            return PolicyResult(KNOB, Outcome.NOT_CONFIGURED)

        perf = to_canonical(perf)
        result = PolicyResult(KNOB, Outcome.UNSUPPORTED)
        hwp = self.detector.has_scaling_driver(INTEL_PSTATE) and self.detector.cpu_flag_present(HWP_FLAG)

        if hwp:
            try:
                epp = to_epp(perf)
            except InvalidPolicyValue:
                self.ctx.debug("set_cpu_perf_policy(%s).hwp_epp.invalid: perf=%s", mode.value, perf)
                result.outcome = Outcome.INVALID
                return result

            count = result.count("epp")
            for node in self.ctx.nodes(EPP_NODES):
                count.attempts += 1
                if not tools.write_sysf(epp.value, node):
                    count.failures += 1

            if count.attempts > 0:
                self.ctx.debug("set_cpu_perf_policy(%s).hwp_epp: %s; cnt/err=%r", mode.value, epp.value, count)
                result.outcome = Outcome.APPLIED
                if not force_epb:
                    return result
            else:
                self.ctx.debug("set_cpu_perf_policy(%s).hwp_epp.no_device", mode.value)
                result.outcome = Outcome.NO_DEVICE

        if not self.detector.cpu_flag_present(EPB_FLAG):
            if not hwp:
                self.ctx.debug("set_cpu_perf_policy(%s).unsupported_cpu", mode.value)
            return result

        try:
            code = to_epb_code(perf)
        except InvalidPolicyValue:
            self.ctx.debug("set_cpu_perf_policy(%s).epb.invalid: perf=%s", mode.value, perf)
            result.outcome = Outcome.INVALID
            return result

        count = result.count("epb")
        for node in self.ctx.nodes(EPB_NODES):
            count.attempts += 1
            if not tools.write_sysf(code, node):
                count.failures += 1

        if count.attempts > 0:
            self.ctx.debug("set_cpu_perf_policy(%s).epb: %s (%d); cnt/err=%r", mode.value, perf, code, count)
            result.outcome = Outcome.APPLIED
            return result

        return self._apply_helper(mode, code, result)

    def _apply_helper(self, mode: PowerStates, code: int, result: PolicyResult) -> PolicyResult:
        if not tools.does_command_exists(EPB_HELPER):
            self.ctx.debug("set_cpu_perf_policy(%s).epb_helper.not_available", mode.value)
            result.outcome = Outcome.UNAVAILABLE
            return result

        tools.load_modules(EPB_HELPER_MODULE)
        rc = run([EPB_HELPER, str(code)], stdout=DEVNULL, stderr=DEVNULL).returncode
        try:
            status = HelperStatus(rc)
        except ValueError:
            status = HelperStatus.UNKNOWN

        self.ctx.debug("set_cpu_perf_policy(%s).epb_helper: %d; rc=%d (%s)", mode.value, code, rc, status.name.lower())
        result.helper_status = status
        result.outcome = Outcome.APPLIED if status is HelperStatus.APPLIED else Outcome.UNSUPPORTED
        return result
