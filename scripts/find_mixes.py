# Print the mixes of a paint set closest to a target color.
import argparse
import json
import logging

from PaintMixer.ColorMixer import ColorMixer
from PaintMixer.Config import MixerConfig
from PaintMixer.PaintSets import ToPaintSet
from PaintMixer.Utils.CustomTypes import PaintSetDefinition, TargetColor
from PaintMixer.Utils.IO import LoadDataset
from PaintMixer.Utils.Logging import ConfigureLogging
from PaintMixer.Utils.ParserOptions import AddLoggingArgs, AddMixerArgs

logger = logging.getLogger("PaintMixer.scripts.find_mixes")

parser = argparse.ArgumentParser(description='Find paint mixes matching a target color')
parser.add_argument('dataset', type=str, help='Reflectance dataset JSON')
target_group = parser.add_mutually_exclusive_group(required=True)
target_group.add_argument('--hex', type=str, help='Target color as #rrggbb')
target_group.add_argument('--lab', type=float, nargs=3, metavar=('L', 'A', 'B'), help='Target color as CIE Lab')
paints_group = parser.add_mutually_exclusive_group(required=True)
paints_group.add_argument('--paints', type=str, nargs='+', help='Paint ids as brand:number')
paints_group.add_argument('--paint_set', type=str, help='JSON paint set definition')
AddMixerArgs(parser)
AddLoggingArgs(parser)
args = parser.parse_args()

ConfigureLogging(args.verbose, args.log_file)

dataset = LoadDataset(args.dataset)
mixer = ColorMixer(dataset, MixerConfig.from_args(args))

if args.paint_set:
    with open(args.paint_set, 'r', encoding='utf-8') as f:
        paint_set = ToPaintSet(PaintSetDefinition.from_dict(json.load(f)), dataset)
else:
    paint_set = args.paints

target = mixer.target_from_hex(args.hex) if args.hex else TargetColor(tuple(args.lab))
logger.info("Target L*a*b* = (%.2f, %.2f, %.2f)", *target.lab)

for rank, mix in enumerate(mixer.find_best_mixes(target, paint_set), start=1):
    parts = " + ".join(f"{count} x {dataset[pid].label} ({pid.brand})" for pid, count in mix.ratio.parts().items())
    gamut = " (out of sRGB gamut)" if mix.color.out_of_gamut else ""
    print(f"{rank}. dE={mix.distance:.2f} {mix.color.hex}{gamut}: {parts}")
