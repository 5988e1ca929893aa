"""Module entrypoint for ``python -m panepreview``.

The launcher re-invokes the package this way inside the preview pane, so
module-mode execution must behave exactly like the console script.
"""

import sys

from .cli import main


if __name__ == "__main__":
    sys.exit(main())
