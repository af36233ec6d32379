import sys

from ghmailer.main import main

sys.exit(main())
