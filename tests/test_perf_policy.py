import logging
from pathlib import Path
from subprocess import CompletedProcess

import pytest

import pytlp
from pytlp.config.resolver import ConfigResolver
from pytlp.context import RunContext
from pytlp.modules import perf_policy
from pytlp.modules.perf_policy import PerfPolicyApplicator
from pytlp.types import HelperStatus, Outcome, PowerStates


@pytest.fixture
def helper(monkeypatch):
    """Fake x86_energy_perf_policy: records invocations, returns a configurable exit status."""
    state = {"installed": True, "rc": 0, "calls": [], "modules": []}

    def fake_run(args, **kwargs):
        state["calls"].append(args)
        return CompletedProcess(args, state["rc"])

    monkeypatch.setattr(perf_policy.tools, "does_command_exists", lambda cmd: state["installed"])
    monkeypatch.setattr(perf_policy.tools, "load_modules", lambda *mods: state["modules"].extend(mods))
    monkeypatch.setattr(perf_policy, "run", fake_run)
    return state


@pytest.fixture
def hwp_machine(sysfs):
    sysfs.intel_pstate()
    sysfs.cpuinfo("hwp", "epb")
    return sysfs


def test_not_configured(make_ctx, hwp_machine, helper):
    hwp_machine.epp_nodes()
    result = PerfPolicyApplicator(make_ctx()).apply(PowerStates.AC)
    assert result.outcome is Outcome.NOT_CONFIGURED
    assert hwp_machine.read("sys/devices/system/cpu/cpu0/cpufreq/energy_performance_preference") == "default"


def test_fallback_parameter_names(make_ctx):
    applicator = PerfPolicyApplicator(make_ctx(ENERGY_PERF_POLICY_ON_BAT="power", CPU_HWP_ON_BAT="performance"))
    assert applicator.configured_value(PowerStates.BATTERY) == "power"

    applicator = PerfPolicyApplicator(make_ctx(CPU_HWP_ON_AC="performance", CPU_ENERGY_PERF_POLICY_ON_AC=""))
    assert applicator.configured_value(PowerStates.AC) == "performance"

    applicator = PerfPolicyApplicator(make_ctx(CPU_ENERGY_PERF_POLICY_ON_AC="default", CPU_HWP_ON_AC="power"))
    assert applicator.configured_value(PowerStates.AC) == "default"


def test_epp_written_and_epb_untouched(make_ctx, hwp_machine, helper):
    hwp_machine.epp_nodes()
    hwp_machine.epb_nodes()
    ctx = make_ctx(CPU_ENERGY_PERF_POLICY_ON_BAT="balance-power")

    result = PerfPolicyApplicator(ctx).apply(PowerStates.BATTERY)

    assert result.outcome is Outcome.APPLIED
    assert repr(result.counts["epp"]) == "2/0"
    assert "epb" not in result.counts
    for cpu in (0, 1):
        assert hwp_machine.read(f"sys/devices/system/cpu/cpu{cpu}/cpufreq/energy_performance_preference") == "balance_power"
        assert hwp_machine.read(f"sys/devices/system/cpu/cpu{cpu}/power/energy_perf_bias") == "6"
    assert helper["calls"] == []


def test_force_epb_writes_both(make_ctx, hwp_machine, helper):
    hwp_machine.epp_nodes()
    hwp_machine.epb_nodes()
    ctx = make_ctx(CPU_ENERGY_PERF_POLICY_ON_AC="performance", X_FORCE_EPB="1")

    result = PerfPolicyApplicator(ctx).apply(PowerStates.AC)

    assert result.outcome is Outcome.APPLIED
    assert result.counts["epp"].attempts == 2
    assert result.counts["epb"].attempts == 2
    assert hwp_machine.read("sys/devices/system/cpu/cpu1/cpufreq/energy_performance_preference") == "performance"
    assert hwp_machine.read("sys/devices/system/cpu/cpu1/power/energy_perf_bias") == "0"


def test_force_argument_overrides_parameter(make_ctx, hwp_machine, helper):
    hwp_machine.epp_nodes()
    hwp_machine.epb_nodes()
    ctx = make_ctx(CPU_ENERGY_PERF_POLICY_ON_AC="performance", X_FORCE_EPB="1")

    result = PerfPolicyApplicator(ctx).apply(PowerStates.AC, force_epb=False)
    assert "epb" not in result.counts


def test_epp_invalid_value_stops(make_ctx, hwp_machine, helper):
    hwp_machine.epp_nodes()
    hwp_machine.epb_nodes()
    ctx = make_ctx(CPU_ENERGY_PERF_POLICY_ON_AC="8")

    result = PerfPolicyApplicator(ctx).apply(PowerStates.AC)

    assert result.outcome is Outcome.INVALID
    assert hwp_machine.read("sys/devices/system/cpu/cpu0/power/energy_perf_bias") == "6"


def test_no_epp_nodes_falls_through_to_epb(make_ctx, hwp_machine, helper):
    hwp_machine.epb_nodes()
    ctx = make_ctx(CPU_ENERGY_PERF_POLICY_ON_AC="balance_performance")

    result = PerfPolicyApplicator(ctx).apply(PowerStates.AC)

    assert result.outcome is Outcome.APPLIED
    assert result.counts["epp"].attempts == 0
    assert result.counts["epb"].attempts == 2
    assert hwp_machine.read("sys/devices/system/cpu/cpu0/power/energy_perf_bias") == "4"


def test_hwp_flag_without_intel_pstate_uses_epb(make_ctx, sysfs, helper):
    sysfs.cpuinfo("hwp", "epb")
    sysfs.epp_nodes()
    sysfs.epb_nodes(1)

    result = PerfPolicyApplicator(make_ctx(CPU_ENERGY_PERF_POLICY_ON_AC="powersave")).apply(PowerStates.AC)

    assert "epp" not in result.counts
    assert sysfs.read("sys/devices/system/cpu/cpu0/power/energy_perf_bias") == "15"
    assert sysfs.read("sys/devices/system/cpu/cpu0/cpufreq/energy_performance_preference") == "default"


def test_numeric_epb_passthrough(make_ctx, sysfs, helper):
    sysfs.cpuinfo("epb")
    sysfs.epb_nodes()

    result = PerfPolicyApplicator(make_ctx(CPU_ENERGY_PERF_POLICY_ON_BAT="11")).apply(PowerStates.BATTERY)

    assert result.outcome is Outcome.APPLIED
    assert sysfs.read("sys/devices/system/cpu/cpu1/power/energy_perf_bias") == "11"


def test_epb_invalid_value(make_ctx, sysfs, helper):
    sysfs.cpuinfo("epb")
    sysfs.epb_nodes()

    result = PerfPolicyApplicator(make_ctx(CPU_ENERGY_PERF_POLICY_ON_BAT="turbo")).apply(PowerStates.BATTERY)

    assert result.outcome is Outcome.INVALID
    assert helper["calls"] == []


def test_epb_write_failures_are_counted(make_ctx, sysfs, helper, monkeypatch):
    sysfs.cpuinfo("epb")
    sysfs.epb_nodes(3)
    monkeypatch.setattr(perf_policy.tools, "write_sysf", lambda value, path: not str(path).startswith(str(sysfs.root / "sys/devices/system/cpu/cpu1")))

    result = PerfPolicyApplicator(make_ctx(CPU_ENERGY_PERF_POLICY_ON_AC="power")).apply(PowerStates.AC)

    assert result.outcome is Outcome.APPLIED
    assert repr(result.counts["epb"]) == "3/1"
    assert result.failures == 1
    assert helper["calls"] == []


def test_helper_not_installed(make_ctx, sysfs, helper):
    sysfs.cpuinfo("epb")
    helper["installed"] = False

    result = PerfPolicyApplicator(make_ctx(CPU_ENERGY_PERF_POLICY_ON_AC="power")).apply(PowerStates.AC)

    assert result.outcome is Outcome.UNAVAILABLE
    assert result.counts["epb"].attempts == 0
    assert helper["calls"] == []
    assert helper["modules"] == []


@pytest.mark.parametrize(
    "rc, status, outcome",
    [
        (0, HelperStatus.APPLIED, Outcome.APPLIED),
        (1, HelperStatus.UNSUPPORTED_CPU, Outcome.UNSUPPORTED),
        (2, HelperStatus.MISMATCH, Outcome.UNSUPPORTED),
        (127, HelperStatus.UNKNOWN, Outcome.UNSUPPORTED),
    ],
)
def test_helper_exit_status(make_ctx, sysfs, helper, rc, status, outcome):
    sysfs.cpuinfo("epb")
    helper["rc"] = rc

    result = PerfPolicyApplicator(make_ctx(CPU_ENERGY_PERF_POLICY_ON_BAT="balance_power")).apply(PowerStates.BATTERY)

    assert helper["modules"] == ["msr"]
    assert helper["calls"] == [["x86_energy_perf_policy", "8"]]
    assert result.helper_status is status
    assert result.outcome is outcome


def test_unsupported_cpu(make_ctx, sysfs, helper):
    sysfs.intel_pstate()
    sysfs.cpuinfo()
    sysfs.epp_nodes()

    result = PerfPolicyApplicator(make_ctx(CPU_ENERGY_PERF_POLICY_ON_AC="performance")).apply(PowerStates.AC)

    assert result.outcome is Outcome.UNSUPPORTED
    assert result.counts == {}
    assert helper["calls"] == []


def test_hwp_without_nodes_or_epb(make_ctx, hwp_machine, helper):
    hwp_machine.cpuinfo("hwp")

    result = PerfPolicyApplicator(make_ctx(CPU_ENERGY_PERF_POLICY_ON_AC="performance")).apply(PowerStates.AC)

    assert result.outcome is Outcome.NO_DEVICE


def test_trace_only_with_pm_topic(make_ctx, hwp_machine, helper, caplog):
    hwp_machine.epp_nodes(1)
    ctx = make_ctx(CPU_ENERGY_PERF_POLICY_ON_AC="performance")

    with caplog.at_level(logging.DEBUG, logger="pytlp"):
        PerfPolicyApplicator(ctx).apply(PowerStates.AC)
        assert not [r for r in caplog.records if r.name == "pytlp.pm"]

        ctx.tracer.enable("pm")
        PerfPolicyApplicator(ctx).apply(PowerStates.AC)

    messages = [r.getMessage() for r in caplog.records if r.name == "pytlp.pm"]
    assert messages == ["set_cpu_perf_policy(AC).hwp_epp: performance; cnt/err=1/0"]


@pytest.fixture
def shipped_defaults(conf_tree):
    shipped = Path(pytlp.__file__).parent / "data" / "defaults.conf"
    Path(conf_tree["defaults_file"]).write_text(shipped.read_text())
    return conf_tree


@pytest.mark.parametrize(
    "user_conf, ac, bat",
    [
        ("", "balance_performance", "balance_power"),
        ("ENERGY_PERF_POLICY_ON_AC=performance\n", "performance", "balance_power"),
        ("CPU_HWP_ON_BAT=power\n", "balance_performance", "power"),
        ("CPU_ENERGY_PERF_POLICY_ON_AC=default\nCPU_HWP_ON_AC=power\n", "default", "balance_power"),
    ],
)
def test_legacy_names_override_shipped_defaults(shipped_defaults, sysfs, user_conf, ac, bat):
    Path(shipped_defaults["user_conf_file"]).write_text(user_conf)
    store = ConfigResolver(**shipped_defaults).read()
    applicator = PerfPolicyApplicator(RunContext(store, root=sysfs.root))

    assert applicator.configured_value(PowerStates.AC) == ac
    assert applicator.configured_value(PowerStates.BATTERY) == bat
