"""SchoolHub Backend.

School management API: enrollment application approval and the teacher
lesson-progress board.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
