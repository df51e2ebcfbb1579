"""Process-wide lock for find-or-create writes on inventory and shopping entries."""

from __future__ import annotations

import threading

# Held across the "look up by name, then increment or insert" sequence so two
# callers cannot both miss the lookup and insert duplicate rows for one name.
ENTRY_LOCK = threading.RLock()
