#!/usr/bin/env python3
"""Entry point for ``python -m flatstore``."""

import sys

from flatstore.cli import main

sys.exit(main())
