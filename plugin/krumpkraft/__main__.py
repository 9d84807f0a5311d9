from __future__ import annotations

import sys

from krumpkraft.cli import main

sys.exit(main())
