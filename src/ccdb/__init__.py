"""ccdb package root."""

from ccdb.exceptions import CcdbError
from ccdb.result import Err, Ok

__all__ = ["__version__", "CcdbError", "Err", "Ok"]

__version__ = "0.1.0"
