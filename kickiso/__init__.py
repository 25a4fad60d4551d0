"""
kickiso builds customized, kickstart driven installation ISOs from a distribution's network install ISO.
"""

# SPDX-License-Identifier: GPL-2.0-or-later
