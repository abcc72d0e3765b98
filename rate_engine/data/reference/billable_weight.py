"""
Billable Weight Configuration

Carriers charge on the greater of actual and volumetric (dimensional)
weight, unless a service is configured to bill on actual weight only.

    volumetric_kg = ceil(L * W * H / DIM_DIVISOR / WEIGHT_STEP_KG) * WEIGHT_STEP_KG

Dimensions in cm, weights in kg. Results are rounded UP to the next
WEIGHT_STEP_KG (0.5 kg).
"""

DIM_DIVISOR = 5000
WEIGHT_STEP_KG = 0.5
