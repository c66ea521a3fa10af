"""Yokogawa WT3000 power analyzer driver and emulator for pwrtest.

Modules:
    grammar: WT3000 command mnemonics, paths, and parameter tokens.
    numeric: Numeric data formats and the measurement payload decoder.
    wt3000: High-level driver and the ``create_instrument`` factory.
    emulator: In-process emulator for testing without hardware.
    config: YAML configuration loading.

Example:
    Connect to a real instrument::

        from pwrtest_yokogawa import NumericFormat, create_instrument

        wt = create_instrument()
        wt.set_numeric_format(NumericFormat.FLOAT)
        values = wt.get_numeric_values_as_floats()
        wt.close()

    Use the emulator for testing::

        from pwrtest_scpi import BulkSession
        from pwrtest_yokogawa import Wt3000, make_wt3000_emulator

        emulator = make_wt3000_emulator()
        emulator.set_numeric_values([230.1, 4.98])
        wt = Wt3000(BulkSession(emulator))
        wt.set_numeric_format("ASCii")
        wt.get_numeric_values_as_floats()
"""

from pwrtest_yokogawa.config import Wt3000Config, config_from_dict, load_config
from pwrtest_yokogawa.emulator import Wt3000Emulator, Wt3000EmulatorConfig, make_wt3000_emulator
from pwrtest_yokogawa.grammar import USB, Transition, parse_transition
from pwrtest_yokogawa.numeric import NumericFormat, decode_numeric, parse_numeric_format
from pwrtest_yokogawa.wt3000 import StatusFilterSpec, Wt3000, Wt3000State, create_instrument

__all__ = [
    # Driver
    "StatusFilterSpec",
    "Wt3000",
    "Wt3000State",
    "create_instrument",
    # Grammar
    "USB",
    "Transition",
    "parse_transition",
    # Numeric data
    "NumericFormat",
    "decode_numeric",
    "parse_numeric_format",
    # Emulator
    "Wt3000Emulator",
    "Wt3000EmulatorConfig",
    "make_wt3000_emulator",
    # Configuration
    "Wt3000Config",
    "config_from_dict",
    "load_config",
]
