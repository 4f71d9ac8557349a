from boolbasin.utils import *
from boolbasin.errors import *
from boolbasin.config import *
from boolbasin.wiring_diagram import *
from boolbasin.expression import *
from boolbasin.state_codec import *
from boolbasin.dynamics import *
from boolbasin.explorer import *
from boolbasin.attractors import *
from boolbasin.probabilistic import *
from boolbasin.analysis import *
from boolbasin.perturbation import *
from boolbasin.network_io import *

try:
    from boolbasin._version import __version__
except ImportError:
    __version__ = 'unknown'
