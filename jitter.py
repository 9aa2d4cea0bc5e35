"""
Deterministic jitter: spreads claims that sit on the same curve value apart,
identically on every render, session and machine.
"""

import math


def _string_hash32(text):
    """Signed 32-bit ``h = h * 31 + unit`` over the UTF-16 code units of text."""
    h = 0
    encoded = text.encode('utf-16-le')
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


def hash_to_jitter(claim_id):
    """Map an id to a stable value in [0, 1] (on a 0.01 grid, max 0.99)."""
    return (abs(_string_hash32(claim_id)) % 100) / 100


def jitter_exponent_offset(jitter, total_spread=1.0):
    """Unit-interval jitter to a symmetric offset in log10 units.

    The default spread of one decade gives ±half an order of magnitude.
    """
    return (jitter - 0.5) * total_spread


def apply_jitter(value, claim_id, total_spread=1.0):
    """Displayed value for a claim: value * 10^offset.

    Multiplicative so the visual spread is the same at every order of
    magnitude on a log axis.
    """
    offset = jitter_exponent_offset(hash_to_jitter(claim_id), total_spread)
    return value * math.pow(10, offset)
