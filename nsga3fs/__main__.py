"""Package entrypoint.

Allows running the CLI as:
  python -m nsga3fs
"""

from .cli import main


if __name__ == "__main__":
    main()
