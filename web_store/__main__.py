import sys

from .run_demo import main

sys.exit(main())
