from .Spectra import ReflectanceSpectrum, Illuminant, WAVELENGTHS, NUM_BANDS
from .Observer import StandardObserver, DEFAULT_OBSERVER
