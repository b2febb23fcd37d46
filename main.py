"""Run the tabrelay HTTP service from a source checkout."""
import sys

from tabrelay.cli import main

if __name__ == "__main__":
    sys.exit(main())
