import sys

from json_toolbox.core.cli import main

if __name__ == "__main__":
    sys.exit(main())
