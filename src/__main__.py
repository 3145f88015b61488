import sys

from netblock.cli import main

sys.exit(main())
