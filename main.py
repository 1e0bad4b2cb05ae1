import sys

from MyShell.shell import main_loop

if __name__ == "__main__":
    sys.exit(main_loop())
