"""
Billable Weight

    volumetric_weight(length_cm, width_cm, height_cm)
        -> L * W * H / DIM_DIVISOR, rounded up to the next 0.5 kg

    billable_weight(actual_kg, volumetric_kg, use_actual_weight)
        -> actual_kg when the service bills on actual weight,
           otherwise the greater of the two

Dimensions that are missing, non-positive or non-finite give a volumetric
weight of 0, so the actual weight applies.
"""

import math

from .data.reference.billable_weight import DIM_DIVISOR, WEIGHT_STEP_KG


def volumetric_weight(length_cm: float, width_cm: float, height_cm: float) -> float:
    """
    Volumetric weight in kg.

    Examples:
        volumetric_weight(60, 50, 40) -> 24.0   (120000 / 5000)
        volumetric_weight(40, 40, 34) -> 11.0   (10.88 rounds up)
    """
    dims = [length_cm, width_cm, height_cm]
    if any(d is None or not math.isfinite(d) or d <= 0 for d in dims):
        return 0.0

    raw = length_cm * width_cm * height_cm / DIM_DIVISOR
    if not math.isfinite(raw) or raw <= 0:
        return 0.0

    steps = math.ceil(raw / WEIGHT_STEP_KG)
    return steps * WEIGHT_STEP_KG


def billable_weight(actual_kg: float, volumetric_kg: float, use_actual_weight: bool) -> float:
    if use_actual_weight:
        return actual_kg
    return max(actual_kg, volumetric_kg)
