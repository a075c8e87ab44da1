"""Module entrypoint for `python -m downstream`."""

from downstream.cli import main

main()
