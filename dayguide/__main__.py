"""Module entrypoint for `python -m dayguide`."""

from dayguide.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
