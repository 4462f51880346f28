# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""HTTP surface of SchoolHub: app factory, middleware, health and v1 routers."""

from src.api.app import create_app

__all__ = ["create_app"]
