import sys

from mwarchive.cli import main

sys.exit(main())
