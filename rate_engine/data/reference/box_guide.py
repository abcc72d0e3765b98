"""
Box Guide Configuration

The calculator shows standard box sizes as cubes scaled to their longest
side. Scaling is tuned from the settings table; these are the defaults and
bounds used when a setting is missing or unparsable.

    cube_px = round(clamp(max_side_cm / REF_CM * REF_PX * SCALE_PCT / 100, MIN_PX, MAX_PX))
    tape_px = clamp(round(cube_px * TAPE_RATIO), TAPE_MIN_PX, TAPE_MAX_PX)
"""

# Setting key -> default value
DEFAULTS = {
    "boxGuideRefCm": 60,
    "boxGuideRefPx": 90,
    "boxGuideMinPx": 50,
    "boxGuideMaxPx": 110,
    "boxGuideScalePct": 100,
}

SETTING_MIN = 1
SETTING_MAX = 100000
SCALE_PCT_MIN = 50
SCALE_PCT_MAX = 200

TAPE_RATIO = 0.22
TAPE_MIN_PX = 10
TAPE_MAX_PX = 22

# Guides with at least this many boxes are laid out left-aligned
ALIGN_LEFT_MIN_ENTRIES = 5

DEFAULT_TITLE = "国際送料見積もりツール"
