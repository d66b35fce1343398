import sys

from filedb.cli import main

sys.exit(main())
