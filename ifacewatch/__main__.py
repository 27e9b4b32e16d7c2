import sys

from ifacewatch.main import main

sys.exit(main())
