"""Allow ``python -m nexushub``."""

from nexushub.cli import main

if __name__ == "__main__":
    main()
