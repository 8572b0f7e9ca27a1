from pytlp.types import EnergyPerfPolicy

LEGACY_NAMES: dict[str, str] = {
    "balance-performance": "balance_performance",
    "normal": "default",
    "balance-power": "balance_power",
    "powersave": "power",
}

EPB_CODES: dict[EnergyPerfPolicy, int] = {
    EnergyPerfPolicy.PERFORMANCE: 0,
    EnergyPerfPolicy.BALANCE_PERFORMANCE: 4,
    EnergyPerfPolicy.DEFAULT: 6,
    EnergyPerfPolicy.BALANCE_POWER: 8,
    EnergyPerfPolicy.POWER: 15,
}

EPB_MAX = 15


class InvalidPolicyValue(ValueError):
    pass


def to_canonical(value: str) -> str:
    return LEGACY_NAMES.get(value, value)


def to_epp(value: str) -> EnergyPerfPolicy:
    """
    :raises InvalidPolicyValue: value is not a canonical policy name
    """
    try:
        return EnergyPerfPolicy(value)
    except ValueError:
        raise InvalidPolicyValue(value) from None


def to_epb_code(value: str) -> int:
    """
    Numeric energy performance bias for a canonical name; "0".."15" pass through.

    :raises InvalidPolicyValue: neither a canonical name nor a valid code
    """
    if value.isdigit() and 0 <= int(value) <= EPB_MAX and value == str(int(value)):
        return int(value)
    return EPB_CODES[to_epp(value)]
