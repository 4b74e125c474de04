# Rebuild the reflectance dataset artifact from an instrument export.
import argparse
import json
import logging

from PaintMixer.Measurement.SpectralCalculator import CalculateDataset, LoadRawMeasurements
from PaintMixer.Utils.IO import SaveDataset
from PaintMixer.Utils.Logging import ConfigureLogging
from PaintMixer.Utils.ParserOptions import AddCalculatorArgs, AddLoggingArgs

logger = logging.getLogger("PaintMixer.scripts.calculate_reflectance")

parser = argparse.ArgumentParser(description='Calculate the reflectance dataset from raw measurements')
parser.add_argument('measurements', type=str, help='CSV with brand, id, name, type and R<nm> columns')
parser.add_argument('output', type=str, help='Dataset JSON to write')
parser.add_argument('--sets', type=str, required=False,
                    help='JSON list of store-bought sets, each with brand, name, type and ids')
AddCalculatorArgs(parser)
AddLoggingArgs(parser)
args = parser.parse_args()

ConfigureLogging(args.verbose, args.log_file)

sets = []
if args.sets:
    with open(args.sets, 'r', encoding='utf-8') as f:
        sets = json.load(f)

measurements = LoadRawMeasurements(args.measurements)
dataset = CalculateDataset(measurements, sets, version=args.version, show_progress=True,
                           max_edge_gap=args.max_edge_gap, smooth=args.smooth, percent=args.percent)
SaveDataset(args.output, dataset)

logger.info("Wrote %d paints to %s", len(dataset), args.output)
for key, reason in dataset.report.skipped.items():
    logger.warning("%s: %s", key, reason)
