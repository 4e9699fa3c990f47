"""Allow `python -m tictactoe_lan`."""

import sys

from .cli import main

sys.exit(main())
