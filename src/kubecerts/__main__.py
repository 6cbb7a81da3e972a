import sys

from kubecerts.cli import main

sys.exit(main())
