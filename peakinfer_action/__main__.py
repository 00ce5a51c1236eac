import sys

from .action_main import main


if __name__ == "__main__":
    sys.exit(main())
