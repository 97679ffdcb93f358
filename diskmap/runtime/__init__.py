"""Runtime support shared by the CLI and command surface.

Currently this is the persisted user configuration in ``config``.
"""

from __future__ import annotations
