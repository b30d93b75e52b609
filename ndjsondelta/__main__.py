"""Entry point for `python -m ndjsondelta`.

Usage:
    python -m ndjsondelta old.ndjson new.ndjson --key id
"""

from __future__ import annotations

import sys

from ndjsondelta.cli import main

sys.exit(main())
