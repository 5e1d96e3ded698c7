import sys

from passwpass.main import main

sys.exit(main())
