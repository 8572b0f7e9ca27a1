#!/usr/bin/env python3
#
# pytlp - apply CPU power saving settings for AC or battery mode

import os
import sys

import click

from pytlp.config.resolver import ConfigError, ConfigResolver
from pytlp.context import RunContext
from pytlp.globals import APP_NAME, APP_VERSION, CONF_DIR, DEFAULTS_FILE, RUN_CONF_FILE, USER_CONF_FILE
from pytlp.modules.handler import PowerModeHandler
from pytlp.modules.system_info import SystemInfo
from pytlp.prints import print_block, print_error, print_header, print_info, print_value, print_warning
from pytlp.tools import setup_logger
from pytlp.trace import Tracer
from pytlp.types import PowerStates

MODES = {"ac": PowerStates.AC, "bat": PowerStates.BATTERY}


def write_run_conf(store, outfile: str) -> None:
    try: os.makedirs(os.path.dirname(outfile), exist_ok=True)
    except OSError as e:
        print_warning(f"Can't write {outfile}: {e.strerror}")
        return
    if not store.serialize(outfile): print_warning(f"Can't write {outfile}")


def show_processor_info(ctx: RunContext) -> None:
    report = SystemInfo(ctx.root).generate_processor_report()
    print_block(
        APP_NAME+' '+APP_VERSION,
        'Distro: '+report.distro_name,
        'Kernel: '+report.kernel_version,
    )
    print_header('Processor')
    print('CPU model:', report.processor_model)
    print_value('scaling driver', report.cpu_driver)
    for core in report.cores:
        print()
        print_value(f'cpu{core.id}/cpufreq/scaling_governor', core.governor)
        print_value(f'cpu{core.id}/cpufreq/scaling_min_freq', core.min_freq)
        print_value(f'cpu{core.id}/cpufreq/scaling_max_freq', core.max_freq)
        print_value(f'cpu{core.id}/cpufreq/energy_performance_preference', core.epp)
        print_value(f'cpu{core.id}/power/energy_perf_bias', core.epb)
    if report.intel_pstate:
        print()
        for name, value in report.intel_pstate.items(): print_value('intel_pstate/'+name, value)
    print()
    print_value('cpufreq/boost', report.boost)
    print_value('kernel.nmi_watchdog', report.nmi_watchdog)
    print_value('platform_profile', report.platform_profile)


@click.command()
@click.argument("command", type=click.Choice(["start", "ac", "bat", "stat"]), required=False)
@click.option("--defaults", default=DEFAULTS_FILE, show_default=True, hidden=True)
@click.option("--confdir", default=CONF_DIR, show_default=True, hidden=True)
@click.option("--config", default=USER_CONF_FILE, show_default=True, help="User config file")
@click.option("--outfile", default=RUN_CONF_FILE, show_default=True, help="Merged config artifact")
@click.option("--notrace", is_flag=True, help="Disable trace output")
@click.option("--version", is_flag=True, help="Show currently installed version")
def main(command, defaults, confdir, config, outfile, notrace, version):
    if version:
        print(APP_NAME, 'version:', APP_VERSION)
        return
    if command is None: raise click.UsageError("Missing command: start, ac, bat or stat")

    setup_logger()
    tracer = Tracer(notrace=notrace)
    try:
        store = ConfigResolver(defaults, confdir, config, tracer=tracer).read()
    except ConfigError as e:
        print_error(e)
        sys.exit(e.exit_code)

    ctx = RunContext(store, tracer)
    if command == "stat":
        show_processor_info(ctx)
        return

    write_run_conf(store, outfile)
    handler = PowerModeHandler(ctx)
    if not handler.is_enabled():
        print_error(f'{APP_NAME} power save is disabled. Set TLP_ENABLE=1 in {config}.')
        sys.exit(1)

    mode = handler.select_mode() if command == "start" else MODES[command]
    print(f'Applying {"AC" if mode is PowerStates.AC else "battery"} settings...', end='', flush=True)
    results = handler.apply(mode)
    print('done.')

    if failures := sum(result.failures for result in results):
        print_info(f'{failures} setting(s) could not be written, enable TLP_DEBUG="pm" for details')


if __name__ == "__main__": main()
