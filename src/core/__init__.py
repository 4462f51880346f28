# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package for SchoolHub.

This package contains shared building blocks:
- config: Application configuration and settings
- errors: Service error taxonomy shared by all domains
"""
