__title__ = 'tilegfx'
__license__ = 'MIT'
__version__ = "1.0.0"

from .utils import *
from .faults import *
from .literals import *
from .palette import *
from .palspec import *
from .switches import *
from .config import *
from .frames import *
from .resolver import *
from .cli import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

version_info = VersionInfo(1, 0, 0, "final", 0, "")

__all__ = (
    "__title__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the utilities
__all__ += utils.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the literals
__all__ += literals.__all__  # type: ignore[attr-defined]
# Load the exposed API of the palettes
__all__ += palette.__all__  # type: ignore[attr-defined]
__all__ += palspec.__all__  # type: ignore[attr-defined]
# Load the exposed API of the option table
__all__ += switches.__all__  # type: ignore[attr-defined]
# Load the exposed API of the configuration
__all__ += config.__all__  # type: ignore[attr-defined]
# Load the exposed API of the argument sources
__all__ += frames.__all__  # type: ignore[attr-defined]
__all__ += resolver.__all__  # type: ignore[attr-defined]
# Load the exposed API of the driver
__all__ += cli.__all__  # type: ignore[attr-defined]
