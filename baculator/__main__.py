import sys

from baculator.main import main

sys.exit(main() or 0)
