import sys

from chronos_diagram.cli import main

sys.exit(main())
