import sys

from udyam.scraper.runner import main

sys.exit(main())
