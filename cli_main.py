# cli_main.py
import sys
import os

# Add the project root to the Python path to allow for absolute imports
# when the script is run from a source checkout.
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

from presentation.main import run


def main():
    run(sys.argv[1] if len(sys.argv) > 1 else None)


if __name__ == "__main__":
    main()
