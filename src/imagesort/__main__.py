import sys

from imagesort.cli import main

sys.exit(main())
