import sys

from innbinder.cli import main

sys.exit(main())
