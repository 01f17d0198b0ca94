"""Run a script notation file with `python -m scriptvm FILE`"""

import sys

from scriptvm import cli

if __name__ == "__main__":
    sys.exit(cli.main())
