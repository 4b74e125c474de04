# PaintMixer - spectral paint mixing and color matching
from .ColorSpace import ColorSpace
from .Config import MixerConfig
from .ReflectanceDataset import ReflectanceDataset
from .ColorMixer import ColorMixer
from .MixCache import MixCache
from .MixSearch import CancellationToken, MixSearchEngine
from .MixingSession import MixingSession, SearchTask
from .Utils.CustomTypes import *
from .Utils.Errors import DataError, InputError, NoMatchFound, PaintMixerError, SearchCancelled
