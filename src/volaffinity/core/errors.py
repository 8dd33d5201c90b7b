#!/usr/bin/env python3
"""
VOLAFFINITY ERRORS
------------------
Exception hierarchy shared by the resolver, the stores and the CLI.

Author: VolAffinity Team
Date: 2026-10-19
"""


class AffinityError(Exception):
    """Base class for every error raised by VolAffinity."""


class InvalidInputError(AffinityError):
    """The supplied claim is missing, empty, or not a PersistentVolumeClaim."""


class LookupFailureError(AffinityError):
    """Reading consumers from the object store failed or was cancelled."""
