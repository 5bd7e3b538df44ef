"""
Generate a fluted knob, then regenerate only the flutes.

Shows the incremental update protocol: changing the flute count rebuilds
the flutes and re-runs the boolean pass, but keeps the body, the cavity
and the knurling.
"""

import sys
import os
import math
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from knobgen import KnobModel, load_knob_json

print("="*70)
print("FLUTED KNOB GENERATION")
print("="*70)
print()

config = load_knob_json(os.path.join(os.path.dirname(__file__), "knob.json"))

print("Building knob...")
knob = KnobModel(config)
body = knob.body_solid
knurling = knob.solids("knurling")
print(f"  Live solids: {knob.live_count}")
print(f"  Subtracted groups: {len(knob.subtraction_set)}")
print(f"  Volume: {knob.engine.volume(knob.final_solid):.2f} mm³")
print()

# Twist the flutes and double their count
print("Updating flutes...")
config.surface.splines[0].count = 24
config.surface.splines[0].angle = math.pi / 8
knob.update(config, parts=["splines"])

print(f"  Body kept: {knob.body_solid is body}")
print(f"  Knurling kept: {knob.solids('knurling') == knurling}")
print(f"  Volume: {knob.engine.volume(knob.final_solid):.2f} mm³")
print()

knob.export_stl("fluted_knob.stl")
knob.export_step("fluted_knob.step")
print("Saved fluted_knob.stl and fluted_knob.step")

knob.dispose()
