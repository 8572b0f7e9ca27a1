#!/usr/bin/env python3
#
# pytlp-readconfs - merge the layered configuration into one parameter table

import sys

import click

from pytlp.config.resolver import ConfigError, ConfigResolver
from pytlp.globals import CONF_DIR, DEFAULTS_FILE, LEGACY_CONF_FILE, USER_CONF_FILE
from pytlp.prints import print_error
from pytlp.tools import setup_logger
from pytlp.trace import Tracer


@click.command()
@click.option("--outfile", required=False, help="Write the merged config to this file instead of stdout")
@click.option("--notrace", is_flag=True, help="Disable trace output even if TLP_DEBUG contains cfg")
@click.option("--cdiff", is_flag=True, help="Only show settings that differ from the defaults")
@click.option("--defaults", default=DEFAULTS_FILE, show_default=True, hidden=True)
@click.option("--confdir", default=CONF_DIR, show_default=True, hidden=True)
@click.option("--config", default=USER_CONF_FILE, show_default=True, help="User config file")
@click.option("--legacy-config", default=LEGACY_CONF_FILE, show_default=True, hidden=True)
def main(outfile, notrace, cdiff, defaults, confdir, config, legacy_config):
    setup_logger()
    resolver = ConfigResolver(defaults, confdir, config, legacy_config, tracer=Tracer(notrace=notrace))
    try:
        _, written = resolver.resolve(outfile, cdiff=cdiff)
    except ConfigError as e:
        print_error(e)
        sys.exit(e.exit_code)

    if not written:
        print_error(f"Can't write {outfile}")
        sys.exit(1)


if __name__ == "__main__": main()
