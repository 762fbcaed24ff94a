import sys

from l4lb_harness.cli import main

sys.exit(main())
