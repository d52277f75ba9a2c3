import sys

from deep_truth.cli import main

sys.exit(main())
