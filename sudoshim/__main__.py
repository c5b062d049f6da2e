"""Allow ``python -m sudoshim [args]``; behaves like the canonical wrapper."""

import sys

from sudoshim.frontend import CANONICAL_NAME
from sudoshim.redirect import main

sys.exit(main([CANONICAL_NAME, *sys.argv[1:]]))
