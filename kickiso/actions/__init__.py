"""
The stages of the ISO build. Every stage is a class which takes the API instance and does its work in ``run()``.
"""

# SPDX-License-Identifier: GPL-2.0-or-later
