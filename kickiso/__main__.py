"""
Allows ``python -m kickiso``.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import sys

from kickiso.cli import main

sys.exit(main())
