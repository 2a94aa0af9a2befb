"""stz: src/stz/__main__.py.

Back up remote filesystem trees over ssh as tar+zstd archives and
restore them again.
"""

import sys

from .cli.dispatcher import main

if __name__ == "__main__":
    sys.exit(main())
