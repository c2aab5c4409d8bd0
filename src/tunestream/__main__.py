"""Allow ``python -m tunestream``."""

from tunestream.cli.main import main

if __name__ == "__main__":
    main()
