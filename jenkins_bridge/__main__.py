#!/usr/bin/env python3
"""
Entry point for running as module: python -m jenkins_bridge
"""

import sys
import asyncio

from pydantic import ValidationError

from jenkins_bridge.app import main


def run() -> None:
    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        sys.exit(1)
    except Exception:
        sys.exit(1)


if __name__ == "__main__":
    run()
