import sys

from img2ascii.cli import main


if __name__ == '__main__':
    sys.exit(main())
