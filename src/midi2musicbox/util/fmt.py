from __future__ import annotations
from decimal import Decimal

def mm(value: float) -> str:
    """
    Kürzeste verlustfreie Darstellung, nie in Exponentenschreibweise;
    ganze Zahlen ohne '.0' (10.0 -> '10', 5e-05 -> '0.00005').
    """
    s = format(Decimal(repr(float(value))), "f")
    return s[:-2] if s.endswith(".0") else s
