import sys

from gpsdrain.cli import main

sys.exit(main())
