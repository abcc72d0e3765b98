"""
International Shipping Quote Calculator
=======================================

Interactive CLI tool to quote every service for a single parcel.

Usage:
    python -m rate_engine.scripts.calculator
    python -m rate_engine.scripts.calculator --data-dir path/to/tables
"""

import argparse
import logging

from rate_engine.box_guide import box_guide, notes_lines, site_text
from rate_engine.calculate_quote import Quote, QuoteStatus, quote
from rate_engine.data.loaders import CsvTableStore
from rate_engine.snapshot import ReferenceSnapshot
from rate_engine.version import VERSION


STATUS_LABELS = {
    QuoteStatus.NO_RATE_FOR_WEIGHT: "No rate for this weight",
    QuoteStatus.ZONE_NOT_CONFIGURED: "Zone not configured (carrier_zones)",
    QuoteStatus.CARRIER_NOT_CONFIGURED: "Carrier not configured",
    QuoteStatus.UNAVAILABLE: "Not available",
}


def get_user_input(snapshot: ReferenceSnapshot) -> dict:
    """Prompt user for parcel details."""
    text = site_text(snapshot)
    print(f"\n=== {text['title']} ===")
    if text["subtitle"]:
        print(text["subtitle"])
    print(f"Version: {VERSION}\n")

    guide = box_guide(snapshot)
    if guide:
        print("Standard boxes:")
        for box in guide:
            comment = f" - {box.comment}" if box.comment else ""
            print(f"  {box.label:<12} {box.dimensions}{comment}")
        print()

    country_code = input("Destination country code (e.g., US): ").strip()
    weight = float(input("Weight (kg): "))
    length = float(input("Length (cm) [0]: ").strip() or 0)
    width = float(input("Width (cm) [0]: ").strip() or 0)
    height = float(input("Height (cm) [0]: ").strip() or 0)

    return {
        "country_code": country_code,
        "weight_kg": weight,
        "length_cm": length,
        "width_cm": width,
        "height_cm": height,
    }


def print_results(result: Quote, parcel: dict, snapshot: ReferenceSnapshot) -> None:
    """Print quote results."""
    print("\n" + "=" * 60)
    print("QUOTE RESULTS")
    print("=" * 60)

    print(f"\nParcel: {parcel['length_cm']}x{parcel['width_cm']}x{parcel['height_cm']} cm, {parcel['weight_kg']} kg")
    print(f"Destination: {result.country_name} ({result.country_code})")

    print(f"\nActual weight:      {result.actual_weight_kg:>8.2f} kg")
    print(f"Volumetric weight:  {result.volumetric_weight_kg:>8.2f} kg")
    print(f"Applied weight:     {result.applied_weight_kg:>8.2f} kg")

    print("\n--- Services ---")
    for line in result.lines:
        name = line.service_name + (" (actual weight)" if line.uses_actual_weight else "")
        if line.priced:
            print(f"{name:<40} ¥{line.price:>10,}  (zone {line.zone}, up to {line.rate_weight_kg:g} kg)")
        else:
            print(f"{name:<40} {STATUS_LABELS[line.status]}")

    if result.carrier_not_configured:
        print(f"\nServices without a carrier: {', '.join(result.carrier_not_configured)}")
    if result.zone_not_configured:
        print(f"Missing carrier zones: {', '.join(result.zone_not_configured)}")

    notes = notes_lines(snapshot)
    if notes:
        print("\nNotes:")
        for note in notes:
            print(f"  {note}")
    print()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Quote international shipping for one parcel")
    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Directory with the reference CSV tables (default: $RATE_ENGINE_DATA_DIR or bundled tables)"
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING)

    try:
        snapshot = CsvTableStore(args.data_dir).load_snapshot()

        # Get user input
        parcel = get_user_input(snapshot)

        # Quote every service
        result = quote(snapshot, **parcel)

        # Print results
        print_results(result, parcel, snapshot)

    except KeyboardInterrupt:
        print("\n\nCancelled.")
    except Exception as e:
        print(f"\nError: {e}")
        raise


if __name__ == "__main__":
    main()
