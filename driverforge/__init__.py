"""driverforge: embed the record/replay driver into a node source tree and build it.

One invocation is one linear run:
  - resolve the host platform tag
  - download and unpack the platform's driver archive
  - date and hash the host checkout
  - compose a reproducible build identifier
  - render the driver bytes into a C++ source file
  - run the native build with self-recording disabled
"""

__version__ = "0.2.0"
__description__ = "Deterministic record/replay driver embedding for node builds"

from driverforge.core.pipeline import BuildPipeline
from driverforge.cli.app import app as cli

__all__ = ["BuildPipeline", "cli", "__version__"]
