"""
Command-line interface for knob generation.
"""

import argparse
import logging
import sys
from pathlib import Path

from ..enums import KnobPart
from ..io.loaders import load_knob_json, save_knob_json


def _describe(knob) -> None:
    """Print a short summary of what was built."""
    config = knob.config
    profile = knob.body_profile
    print(f"\nKnob summary:")
    facets = f"{config.body.sides} sides" if config.body.sides >= 3 else "smooth"
    print(f"  Body: height {profile.height:.2f} mm, max radius {profile.max_radius:.2f} mm, {facets}")

    if knob.cavity_profile is not None and knob.solids(KnobPart.CAVITY):
        print(f"  Cavity: height {knob.cavity_profile.height:.2f} mm, "
              f"max radius {knob.cavity_profile.max_radius:.2f} mm")
    else:
        print(f"  Cavity: none")

    for family in (KnobPart.POINTERS, KnobPart.KNURLING, KnobPart.SPLINES, KnobPart.THREADS,
                   KnobPart.INTERNAL_SPLINES, KnobPart.INTERNAL_THREADS):
        features = knob.solids(family)
        if features:
            copies = sum(len(f) for f in features)
            print(f"  {family.value}: {len(features)} feature(s), {copies} solid(s)")

    subtracted = len(knob.subtraction_set)
    if subtracted:
        print(f"  Subtracted from body: {subtracted} group(s)")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Generate 3D-printable knobs from a JSON configuration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate knob.stl in the current directory
  knobgen knob.json

  # Also write a STEP file, into an output directory
  knobgen knob.json --step -o out/

  # Custom file name
  knobgen knob.json --name volume_knob

  # View in OCP viewer without saving
  knobgen knob.json --view --no-save

  # Save the normalized configuration (all defaults filled in)
  knobgen knob.json --save-json knob_full.json
        """
    )

    parser.add_argument(
        'config_file',
        type=str,
        help='Knob configuration JSON file'
    )

    parser.add_argument(
        '-o', '--output-dir',
        type=str,
        default='.',
        help='Output directory (default: current directory)'
    )

    parser.add_argument(
        '--name',
        type=str,
        default='knob',
        help='Base name of output files (default: knob)'
    )

    parser.add_argument(
        '--stl',
        dest='stl',
        action='store_true',
        default=True,
        help='Write an ASCII STL file (default)'
    )

    parser.add_argument(
        '--no-stl',
        dest='stl',
        action='store_false',
        help='Do not write an STL file'
    )

    parser.add_argument(
        '--step',
        action='store_true',
        help='Also write a STEP file'
    )

    parser.add_argument(
        '--view',
        action='store_true',
        help='View in OCP viewer (requires ocp_vscode extension)'
    )

    parser.add_argument(
        '--no-save',
        action='store_true',
        help='Do not save output files (use with --view)'
    )

    parser.add_argument(
        '--save-json',
        type=str,
        default=None,
        help='Save the configuration with all defaults filled in'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Log regeneration steps'
    )

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    # Load configuration
    try:
        print(f"Loading knob configuration from {args.config_file}...")
        config = load_knob_json(args.config_file)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    from ..core.knob import KnobModel

    print(f"\nGenerating knob...")
    knob = KnobModel(config)
    _describe(knob)

    if not args.no_save:
        output_dir = Path(args.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        print()

        if args.stl:
            output_file = output_dir / f"{args.name}.stl"
            knob.export_stl(str(output_file))
            print(f"  Saved: {output_file}")

        if args.step:
            output_file = output_dir / f"{args.name}.step"
            knob.export_step(str(output_file))
            print(f"  Saved: {output_file}")

    # View in OCP viewer
    if args.view:
        if knob.show(names=[args.name], colors=["steelblue"]) is not None:
            print("Displayed in OCP viewer")
        else:
            print("\nWarning: ocp_vscode not available for viewing", file=sys.stderr)
            print("Install with: pip install ocp_vscode", file=sys.stderr)

    if args.save_json:
        output_path = Path(args.save_json)
        save_knob_json(knob.config, output_path)
        print(f"\nSaved configuration JSON: {output_path}")

    knob.dispose()
    return 0


if __name__ == '__main__':
    sys.exit(main())
