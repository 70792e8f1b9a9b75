"""
bfvm runtime: Machine profiles and defaults.

A profile fixes the cell type and the value band of a machine. CLI flags
override individual profile values.
"""

import os
from datetime import timedelta
from typing import Any, Dict


MACHINE_PROFILES: Dict[str, Dict[str, Any]] = {
    "classic": {
        "cell_type": "u8",
        "min": 0,
        "max": 255,
        "description": "Classic byte machine (u8 cells, band 0..255)",
    },
    "extended": {
        "cell_type": "u64",
        "min": 0,
        "max": 255,
        "description": "64-bit cells with a byte band, adjustable with 'set bound'",
    },
    "u16": {
        "cell_type": "u16",
        "min": None,
        "max": None,
        "description": "16-bit cells, natural range",
    },
    "u32": {
        "cell_type": "u32",
        "min": None,
        "max": None,
        "description": "32-bit cells, natural range",
    },
    "u64": {
        "cell_type": "u64",
        "min": None,
        "max": None,
        "description": "64-bit cells, natural range",
    },
}

DEFAULT_PROFILE = "classic"
INTERACTIVE_PROFILE = "extended"

DEFAULT_MAX_CYCLES = int(os.environ.get("BFVM_MAX_CYCLES", "10000000"))

# Interactive pacing: time between two instructions while running
DEFAULT_SPEED = timedelta(milliseconds=100)

# Speed adjustment per key modifier
SPEED_STEPS: Dict[str, timedelta] = {
    "none": timedelta(milliseconds=100),
    "shift": timedelta(milliseconds=50),
    "ctrl": timedelta(milliseconds=200),
    "alt": timedelta(milliseconds=25),
}


def get_profile(name: str) -> Dict[str, Any]:
    try:
        return MACHINE_PROFILES[name]
    except KeyError:
        raise KeyError(
            f"unknown profile {name!r} (expected one of: {', '.join(MACHINE_PROFILES)})"
        ) from None
