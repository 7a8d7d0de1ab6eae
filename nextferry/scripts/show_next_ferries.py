# nextferry/scripts/show_next_ferries.py
from __future__ import annotations

import json
import logging
import sys

from nextferry.services.engine import ScheduleEngine
from nextferry.viewmodels.ferry_state import state_as_dict


def main() -> int:
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    engine = ScheduleEngine()
    engine.initialize()
    state = engine.snapshot()
    print(json.dumps(state_as_dict(state), indent=2, ensure_ascii=False))
    if state.error:
        print(state.error, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
