import sys

from netpreserve.cli import main

sys.exit(main())
