from pytlp.context import RunContext
from pytlp.modules.capabilities import CapabilityDetector
from pytlp.modules.controller import CpuController
from pytlp.modules.perf_policy import PerfPolicyApplicator
from pytlp.modules.system_info import SystemInfo
from pytlp.types import PolicyResult, PowerStates


class PowerModeHandler:
    """
    Applies all CPU power settings for a power mode.

    The applicators are independent of each other and always run in the
    same order; a failure in one never stops the others.
    """

    def __init__(self, ctx: RunContext) -> None:
        self.ctx = ctx
        self.ctx.tracer.enable_from(ctx.param("TLP_DEBUG"))
        detector = CapabilityDetector(ctx.root)
        self.controller = CpuController(ctx, detector)
        self.perf_policy = PerfPolicyApplicator(ctx, detector)

    def is_enabled(self) -> bool:
        return self.ctx.param("TLP_ENABLE") == "1"

    def select_mode(self) -> PowerStates:
        """
        Determines the power mode for ``start``.

        TLP_PERSISTENT_DEFAULT=1 always selects TLP_DEFAULT_MODE. Otherwise the
        power source decides; without a battery TLP_DEFAULT_MODE (or AC) is used.

        :return: the power mode to apply
        """
        default_mode = PowerStates.BATTERY if self.ctx.param("TLP_DEFAULT_MODE") == "BAT" else PowerStates.AC
        if self.ctx.param("TLP_PERSISTENT_DEFAULT") == "1":
            self.ctx.debug("select_mode.persistent: %s", default_mode.value)
            return default_mode

        ac_plugged = SystemInfo.is_ac_plugged()
        if ac_plugged is None:
            self.ctx.debug("select_mode.no_battery: %s", default_mode.value)
            return default_mode
        return PowerStates.AC if ac_plugged else PowerStates.BATTERY

    def apply(self, mode: PowerStates) -> list[PolicyResult]:
        self.ctx.debug("apply(%s)", mode.value)
        results = [
            self.controller.set_scaling_governor(mode),
            self.controller.set_scaling_min_max_freq(mode),
            self.controller.set_perf_pct(mode),
            self.controller.set_boost(mode),
            self.controller.set_hwp_dyn_boost(mode),
            self.perf_policy.apply(mode),
            self.controller.set_sched_powersave(mode),
            self.controller.set_nmi_watchdog(),
            self.controller.set_phc_controls(),
            self.controller.set_platform_profile(mode),
        ]
        for result in results:
            self.ctx.debug("apply(%s).%s: %s %s", mode.value, result.knob, result.outcome.value, result.counts)
        return results
