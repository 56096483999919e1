import sys

from esmigrate.cli import main

sys.exit(main())
