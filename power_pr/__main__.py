import sys

from power_pr.cli import main

sys.exit(main())
