from os import getenv

APP_NAME = "pytlp"
APP_VERSION = "1.3.1"

# filesystem root for sysfs/procfs lookups
ROOT = getenv("PYTLP_ROOT", "/")

DEFAULTS_FILE = "/usr/share/tlp/defaults.conf"
CONF_DIR = "/etc/tlp.d"
USER_CONF_FILE = "/etc/tlp.conf"
LEGACY_CONF_FILE = "/etc/default/tlp"
RUN_CONF_FILE = "/run/tlp/run.conf"

# relative to ROOT
CPU_DIR = "sys/devices/system/cpu"
CPUINFO = "proc/cpuinfo"
NMI_WATCHDOG_FILE = "proc/sys/kernel/nmi_watchdog"
PLATFORM_PROFILE_FILE = "sys/firmware/acpi/platform_profile"
PLATFORM_PROFILE_CHOICES = "sys/firmware/acpi/platform_profile_choices"

INTEL_PSTATE = "intel_pstate"
EPB_HELPER = "x86_energy_perf_policy"
EPB_HELPER_MODULE = "msr"

# exit codes of the config resolver
EXIT_USER_CONFIG_MISSING = 4
EXIT_DEFAULTS_MISSING = 5
