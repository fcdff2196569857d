"""Allow ``python -m librarydb``."""

from .cli import main

if __name__ == "__main__":
    main()
