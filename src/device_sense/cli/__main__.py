"""
Allow running devicectl as a module: python -m device_sense.cli
"""

import sys
from .devicectl import main

if __name__ == "__main__":
    sys.exit(main())
