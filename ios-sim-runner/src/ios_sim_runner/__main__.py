from __future__ import annotations

from ios_sim_runner.cli.run_tests import main

if __name__ == "__main__":
    raise SystemExit(main())
