import argparse

from PaintMixer.ColorMath.Conversion import SYMMETRIC_DELTA_E_METHODS


def AddMixerArgs(parser: argparse.ArgumentParser):
    # defaults are None so that MixerConfig.from_args keeps the config defaults
    parser.add_argument('--illuminant', type=str, required=False, help='Standard illuminant, e.g. D65 or D50')
    parser.add_argument('--observer', type=str, required=False, help='Standard observer colour-matching functions')
    parser.add_argument('--delta_e_method', type=str, required=False, choices=list(SYMMETRIC_DELTA_E_METHODS),
                        help='Color difference formula')
    parser.add_argument('--max_paints', type=int, required=False, help='Largest number of paints in a mix')
    parser.add_argument('--ratio_steps', type=int, required=False, help='Ratios are searched in steps of 1/N')
    parser.add_argument('--max_results', type=int, required=False, help='Number of mixes to return')
    parser.add_argument('--no_match_threshold', type=float, required=False,
                        help='Warn when the best mix is farther than this')
    parser.add_argument('--workers', type=int, required=False, help='Threads used by the search')
    parser.add_argument('--show_progress', action='store_true', default=None, help='Display a progress bar')


def AddCalculatorArgs(parser: argparse.ArgumentParser):
    parser.add_argument('--max_edge_gap', type=float, default=10.0,
                        help='Largest distance in nm a grid point may lie outside the measured range')
    parser.add_argument('--smooth', action='store_true', help='Smooth noisy measurements before resampling')
    parser.add_argument('--percent', action='store_true', help='Measurements are in percent instead of [0, 1]')
    parser.add_argument('--version', type=str, default='', help='Version string stored in the dataset')


def AddLoggingArgs(parser: argparse.ArgumentParser):
    parser.add_argument("--verbose", action='store_true', help="Verbose output")
    parser.add_argument("--log_file", type=str, required=False, help="Also write the log to this file")
